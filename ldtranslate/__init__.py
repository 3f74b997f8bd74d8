"""ldtranslate — external/internal translation and write policy for linked data.

A repository's HTTP layer sees public URIs; its storage layer uses internal
identifiers. This package sits between the two:

- Identifiers: IdentifierTranslator maps external URIs <-> internal ids
- Constraints: ConstraintChecker classifies statements as allowed or violating
- Graph: translate_graph rewrites inbound RDF graphs
- Update: rewrite_update rewrites SPARQL Update requests
- ModePolicy: STRICT / LENIENT / RELAXED enforcement of server-managed data

Violations are collected, never raised on first sight: a rejected translation
reports every offending statement at once.
"""

from __future__ import annotations

from rdflib import Graph

from .constraints import ConstraintChecker, PolicyTable
from .exceptions import (
    ConstraintViolationError,
    LDTranslateError,
    MalformedInput,
    TranslationError,
    UnsupportedMediaType,
)
from .graph import externalize_graph, translate_graph
from .identifiers import IdentifierTranslator
from .types import ModePolicy, TranslationResult, UpdateRequest, Violation, ViolationKind
from .update import rewrite_update


def translate(
    value: Graph | UpdateRequest,
    translator: IdentifierTranslator,
    mode: ModePolicy = ModePolicy.STRICT,
    checker: ConstraintChecker | None = None,
) -> TranslationResult:
    """Translate a graph or an update request into the internal domain."""
    if isinstance(value, Graph):
        return translate_graph(value, translator, mode, checker)
    if isinstance(value, UpdateRequest):
        return rewrite_update(value, translator, mode, checker)
    raise TypeError(f"Cannot translate {type(value).__name__}")


__all__ = [
    "ConstraintChecker",
    "ConstraintViolationError",
    "IdentifierTranslator",
    "LDTranslateError",
    "MalformedInput",
    "ModePolicy",
    "PolicyTable",
    "TranslationError",
    "TranslationResult",
    "UnsupportedMediaType",
    "UpdateRequest",
    "Violation",
    "ViolationKind",
    "externalize_graph",
    "rewrite_update",
    "translate",
    "translate_graph",
]
