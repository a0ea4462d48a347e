"""Registry URL building and payload decoding shared by both fetchers."""
from __future__ import annotations

import json
import logging
from typing import Optional

from config import EngineConfig
from constants import RegistryFormat
from models import MODULE_NAME_PATTERN, FetchError, FetchOutcome, PackageRef, SourceEntry, ordered_unique
from transform.scanner import DependencyScanner

logger = logging.getLogger(__name__)


def build_url(config: EngineConfig, name: str) -> str:
    """Registry URL for ``name``: base + name + source extension."""
    return config.source_url(name)


def decode_payload(
    config: EngineConfig,
    scanner: DependencyScanner,
    name: str,
    url: str,
    status_code: int,
    body: Optional[str],
) -> FetchOutcome:
    """Turn one registry response into a SourceEntry or a FetchError.

    Args:
        config: Engine configuration (selects the payload format).
        scanner: Scanner used for the fetch-time external dependency scan.
        name: Module name that was requested.
        url: URL that was fetched.
        status_code: HTTP status; 0 means the request never completed.
        body: Response text, or the failure reason when status_code is 0.

    Returns:
        SourceEntry on success, FetchError otherwise.
    """
    if status_code == 0:
        return FetchError(name, body or "request failed")
    if not 200 <= status_code < 300:
        return FetchError(name, f"HTTP {status_code}", status_code)
    if config.registry_format is RegistryFormat.JSON:
        return _decode_registry_item(scanner, name, url, body or "")
    if not (body or "").strip():
        return FetchError(name, "empty response body", status_code)
    return SourceEntry(
        name=name,
        raw_source=body,
        declared_deps=scanner.scan_external(body),
        url=url,
    )


def _decode_registry_item(scanner: DependencyScanner, name: str, url: str, body: str) -> FetchOutcome:
    """Decode a registry-item JSON document (``files[0].content`` plus dependency lists)."""
    try:
        data = json.loads(body)
    except json.JSONDecodeError as exc:
        return FetchError(name, f"invalid registry JSON: {exc.msg}")
    if not isinstance(data, dict):
        return FetchError(name, "invalid registry JSON: expected an object")

    files = data.get("files") or []
    content = ""
    if isinstance(files, list) and files and isinstance(files[0], dict):
        content = files[0].get("content") or ""
    if not isinstance(content, str) or not content.strip():
        return FetchError(name, "registry item has no file content")

    declared = list(scanner.scan_external(content))
    for token in data.get("dependencies") or []:
        try:
            ref = PackageRef.parse(str(token))
        except ValueError:
            logger.warning("Skipping malformed dependency %r declared by %s", token, name)
            continue
        # registry-pinned versions replace the scanner's "latest" for the same package
        declared = [d for d in declared if d.name != ref.name]
        declared.append(ref)

    siblings = []
    for dep in data.get("registryDependencies") or []:
        dep = str(dep).strip()
        if MODULE_NAME_PATTERN.fullmatch(dep):
            siblings.append(dep)
        elif dep:
            logger.debug("Ignoring non-local registry dependency %s of %s", dep, name)

    return SourceEntry(
        name=name,
        raw_source=content,
        declared_deps=ordered_unique(declared),
        declared_siblings=ordered_unique(siblings),
        url=url,
    )
