"""Dialect normalizer: registry source -> project JSX."""
from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants
from transform.rules import DIRECTIVE, specifier_rules, typing_rules
from transform.substitutions import substitution_rules

logger = logging.getLogger(__name__)

RESIDUAL_REGISTRY_ALIAS = re.compile(r"""["']@/registry/[^"'\n]*["']""")


class DialectNormalizer:
    """Ordered pipeline of named rewrite rules.

    Rules run in a fixed order: directive removal, specifier rewrites, static
    typing removal, then library substitutions. Nothing here raises on odd
    input; patterns that do not match are left as they are.
    """

    def __init__(
        self,
        internal_alias: str = Constants.INTERNAL_ALIAS,
        shared_lib_alias: str = Constants.SHARED_LIB_ALIAS,
        hooks_alias: str = Constants.HOOKS_ALIAS,
        substitutions: Optional[Iterable[str]] = None,
    ):
        self.rules: List = [DIRECTIVE]
        self.rules.extend(specifier_rules(internal_alias, shared_lib_alias, hooks_alias))
        self.rules.extend(typing_rules())
        self.rules.extend(substitution_rules(substitutions))

    @property
    def rule_names(self) -> List[str]:
        return [rule.name for rule in self.rules]

    def normalize(self, raw_source: str, module: Optional[str] = None) -> str:
        return self.normalize_with_report(raw_source, module)[0]

    def normalize_with_report(self, raw_source: str, module: Optional[str] = None) -> Tuple[str, List[str]]:
        """Normalize ``raw_source`` and report which rules changed it.

        Args:
            raw_source: Module source as fetched from the registry.
            module: Module name, used only for log context.

        Returns:
            (normalized_source, names of rules that fired, in order)
        """
        text = raw_source or ""
        fired = []
        for rule in self.rules:
            text, count = rule.apply(text)
            if count:
                fired.append(rule.name)

        if is_debug_enabled(logger):
            logger.debug(
                "Normalized module",
                extra=extra_context(
                    event="normalize",
                    component="normalizer",
                    target=module,
                    rules=",".join(fired),
                ),
            )

        residual = RESIDUAL_REGISTRY_ALIAS.findall(text)
        if residual:
            logger.warning(
                "Normalization left %d registry alias(es) in %s: %s",
                len(residual),
                module or "<module>",
                ", ".join(residual[:3]),
                extra=extra_context(
                    event="normalization_anomaly",
                    component="normalizer",
                    outcome="residual_alias",
                    target=module,
                ),
            )
        return text, fired
