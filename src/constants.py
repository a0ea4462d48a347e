"""Constants used in the project."""

from enum import Enum


class RegistryFormat(Enum):
    """Payload formats served by a component registry.

    Args:
        Enum (string): Registry payload format.
    """

    SOURCE = "source"
    JSON = "json"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration defaults; not intended to provide behavior.
    """

    REGISTRY_BASE_URL = (
        "https://raw.githubusercontent.com/shadcn-ui/ui/main/apps/www/registry/default/ui"
    )
    REGISTRY_JSON_BASE_URL = "https://ui.shadcn.com/r/styles/default"
    SOURCE_EXTENSION = ".tsx"
    JSON_EXTENSION = ".json"
    TARGET_EXTENSION = ".jsx"

    # Canonical project layout
    COMPONENTS_DIR = "/src/components/ui"
    INTERNAL_ALIAS = "@/components/ui"
    SHARED_LIB_ALIAS = "@/lib"
    HOOKS_ALIAS = "@/hooks"
    MANIFEST_PATH = "/package.json"
    DEFAULT_PROJECT_NAME = "custom-component-project"

    DEFAULT_VERSION_SPEC = "latest"
    BASE_RUNTIME_PACKAGES = ("react", "react-dom")
    BASELINE_DEPENDENCIES = {
        "class-variance-authority": "^0.7.0",
        "clsx": "^2.0.0",
        "tailwind-merge": "^2.2.0",
        "lucide-react": "^0.263.1",
    }

    REQUEST_TIMEOUT = 15  # Timeout in seconds for every registry fetch
    HTTP_RETRY_MAX = 1  # One round trip per fetch; failures are retried by later runs
    MAX_CONCURRENCY = 4
    USER_AGENT = "compforge/0.1"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "COMPFORGE_LOG_LEVEL"
