"""Inspect the UI components present in a project file-set."""
from __future__ import annotations

import re
from typing import Dict, List, Mapping

from constants import Constants

COMPONENT_EXTENSIONS = (".jsx", ".tsx", ".js", ".ts")

EXPORT_BLOCK = re.compile(r"export\s*\{([^}]+)\}")
EXPORT_DIRECT = re.compile(r"export\s+(?:default\s+)?(?:const|let|function|class)\s+([\w$]+)")


def _component_name(path: str, components_dir: str) -> str:
    prefix = components_dir.strip("/") + "/"
    relative = path.lstrip("/")
    if not relative.startswith(prefix):
        return ""
    file_name = relative[len(prefix):]
    if "/" in file_name:
        return ""
    for ext in COMPONENT_EXTENSIONS:
        if file_name.endswith(ext):
            return file_name[: -len(ext)]
    return ""


def existing_components(files: Mapping[str, str], components_dir: str = Constants.COMPONENTS_DIR) -> List[str]:
    """Names of UI components already in ``files``, sorted."""
    names = {_component_name(path, components_dir) for path in files}
    names.discard("")
    return sorted(names)


def extract_component_exports(
    files: Mapping[str, str], components_dir: str = Constants.COMPONENTS_DIR
) -> Dict[str, List[str]]:
    """Map each UI component to the names its module exports.

    ``export { A, B as C }`` contributes ``A`` and ``B``; direct declarations
    such as ``export const buttonVariants`` contribute their own name.
    Components without exports are left out.
    """
    result: Dict[str, List[str]] = {}
    for path in sorted(files):
        name = _component_name(path, components_dir)
        if not name:
            continue
        content = files[path] or ""
        exports: List[str] = []
        for block in EXPORT_BLOCK.finditer(content):
            for item in block.group(1).split(","):
                exported = re.split(r"\s+as\s+", item.strip())[0].strip()
                if exported.startswith("type "):
                    continue
                if exported and exported not in exports:
                    exports.append(exported)
        for match in EXPORT_DIRECT.finditer(content):
            if match.group(1) not in exports:
                exports.append(match.group(1))
        if exports:
            result[name] = exports
    return result
