"""Placeholder modules for components that could not be fetched or processed."""
from __future__ import annotations

import json
import logging
import re

from models import FetchError, ModuleRecord, ModuleStatus

logger = logging.getLogger(__name__)

PLACEHOLDER_TEMPLATE = """\
import * as React from "react";
import {{ cn }} from "@/lib/utils";

const {component} = React.forwardRef(({{ className, ...props }}, ref) => (
  <div
    ref={{ref}}
    data-fallback={{{name_literal}}}
    className={{cn(
      "flex flex-col items-center justify-center rounded-md border-2 border-dashed border-red-300 bg-red-50 p-4 text-center text-red-600",
      className
    )}}
    {{...props}}
  >
    <div className="font-semibold">{{"\\u26a0\\ufe0f Component Error"}}</div>
    <p className="text-sm">{{{message_literal}}}</p>
    <p className="mt-1 text-xs opacity-75">{{{reason_literal}}}</p>
  </div>
));
{component}.displayName = {display_literal};

export {{ {component} }};
export default {component};
"""


def pascal_case(name: str) -> str:
    """``dropdown-menu`` -> ``DropdownMenu``; always a valid identifier."""
    parts = [p for p in re.split(r"[^A-Za-z0-9]+", name or "") if p]
    ident = "".join(p[:1].upper() + p[1:] for p in parts)
    if not ident or ident[0].isdigit():
        ident = "Component" + ident
    return ident


def placeholder_source(name: str, reason: str) -> str:
    """JSX module that renders a visible error box naming ``name`` and ``reason``."""
    component = pascal_case(name)
    return PLACEHOLDER_TEMPLATE.format(
        component=component,
        name_literal=json.dumps(name),
        message_literal=json.dumps(f'The "{name}" component could not be loaded from the registry.'),
        reason_literal=json.dumps(f"Reason: {reason}"),
        display_literal=json.dumps(component),
    )


def degrade_to_placeholder(name: str, error: FetchError, path: str, raw_source: str = "") -> ModuleRecord:
    """Build the FAILED record that stands in for ``name``.

    Args:
        name: Module name.
        error: Why the module could not be produced.
        path: Canonical project path the placeholder is stored under.
        raw_source: Source fetched before processing failed, if any.

    Returns:
        ModuleRecord with status FAILED, no dependencies and placeholder content.
    """
    logger.warning("Using placeholder for %s: %s", name, error.reason)
    return ModuleRecord(
        name=name,
        path=path,
        status=ModuleStatus.FAILED,
        raw_source=raw_source,
        normalized_source=placeholder_source(name, error.reason),
        error=error,
    )
