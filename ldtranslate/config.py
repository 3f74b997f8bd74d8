"""Loader for translation settings: base URI, server-managed mode and policy table."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .constraints import PolicyTable
from .identifiers import DEFAULT_INTERNAL_PREFIX, IdentifierTranslator
from .types import ModePolicy

logger = logging.getLogger(__name__)

MODE_ENV_VAR = "LDTRANSLATE_SERVER_MANAGED_MODE"
DEFAULT_BASE_URI = "http://localhost:8080/rest/"


@dataclass(frozen=True)
class TranslationConfig:
    """Process-wide settings, read once and never mutated."""

    base_uri: str = DEFAULT_BASE_URI
    internal_prefix: str = DEFAULT_INTERNAL_PREFIX
    mode: ModePolicy = ModePolicy.STRICT
    policy: PolicyTable = field(default_factory=PolicyTable.default)

    def translator(self) -> IdentifierTranslator:
        return IdentifierTranslator(self.base_uri, self.internal_prefix)

    def mode_for(self, lenient: bool = False) -> ModePolicy:
        """Effective mode for a graph body.

        A lenient request turns STRICT into LENIENT. Under RELAXED the mode
        is unchanged; the caller passes the lenient flag on so that hard
        violations are dropped while relaxable statements are kept.
        """
        if lenient and self.mode == ModePolicy.STRICT:
            return ModePolicy.LENIENT
        return self.mode


def _load_policy(data: Mapping[str, Any] | None) -> PolicyTable:
    if not data:
        return PolicyTable.default()
    default = PolicyTable.default()
    return PolicyTable.build(
        managed_predicates=data.get("managed_predicates", default.managed_predicates),
        managed_namespaces=data.get("managed_namespaces", default.managed_namespaces),
        restricted_types=data.get("restricted_types", default.restricted_types),
        restricted_type_namespaces=data.get(
            "restricted_type_namespaces", default.restricted_type_namespaces
        ),
        relaxable_types=data.get("relaxable_types", default.relaxable_types),
        type_predicates=data.get("type_predicates", default.type_predicates),
    )


def load_translation_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> TranslationConfig:
    """Load settings from YAML with defaults; the environment may override the mode.

    The file's ``mode`` (``strict`` or ``relaxed``) is replaced by
    ``LDTRANSLATE_SERVER_MANAGED_MODE`` when that variable is set.
    """
    environ = os.environ if environ is None else environ
    raw: dict[str, Any] = {}
    if path is not None and path.exists():
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    elif path is not None:
        logger.debug("No translation config at %s, using defaults", path)

    mode_value = environ.get(MODE_ENV_VAR) or raw.get("mode") or ModePolicy.STRICT.value
    mode = ModePolicy.parse(mode_value)
    if mode == ModePolicy.LENIENT:
        raise ValueError("LENIENT is chosen per request, not as the server managed mode")

    return TranslationConfig(
        base_uri=str(raw.get("base_uri", DEFAULT_BASE_URI)),
        internal_prefix=str(raw.get("internal_prefix", DEFAULT_INTERNAL_PREFIX)),
        mode=mode,
        policy=_load_policy(raw.get("policy")),
    )


__all__ = [
    "MODE_ENV_VAR",
    "TranslationConfig",
    "load_translation_config",
]
