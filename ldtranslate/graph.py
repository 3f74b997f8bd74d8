"""GraphTranslator — rewrites parsed RDF graphs between external and internal URIs.

Inbound (translate_graph): every statement is classified once. Allowed
statements have their subject and object rewritten into the internal domain;
disallowed statements are collected as violations and kept unmodified. The
result is a new graph built from a single pass over the input.

Outbound (externalize_graph): internal identifiers are rewritten to the
public URIs a client sees. No policy is applied.
"""

from __future__ import annotations

import logging
from typing import Iterator

from rdflib import Graph

from .constraints import ConstraintChecker
from .identifiers import IdentifierTranslator
from .types import ModePolicy, Statement, TranslationResult, Violation

logger = logging.getLogger(__name__)


def _new_graph_like(graph: Graph) -> Graph:
    out = Graph()
    for prefix, namespace in graph.namespaces():
        out.bind(prefix, namespace, override=False)
    return out


def _rewrite(statement: Statement, translator: IdentifierTranslator) -> Statement:
    s, p, o = statement
    return (translator.translate_term(s), p, translator.translate_term(o))


def _is_accepted(violation: Violation, mode: ModePolicy) -> bool:
    return violation.kind.relaxable and mode == ModePolicy.RELAXED


def _scan(
    graph: Graph,
    translator: IdentifierTranslator,
    mode: ModePolicy,
    checker: ConstraintChecker,
    violations: list[Violation],
    lenient: bool = False,
) -> Iterator[Statement]:
    for statement in graph:
        if mode == ModePolicy.LENIENT and checker.touches_managed(statement):
            logger.debug("Dropping server managed statement %s", statement)
            continue

        violation = checker.classify(statement)
        if violation is not None and not _is_accepted(violation, mode):
            if lenient:
                logger.debug("Dropping disallowed statement %s", statement)
                continue
            violations.append(violation)
            yield statement
            continue

        rewritten = _rewrite(statement, translator)
        if rewritten != statement:
            logger.debug("Translated %s to %s", statement, rewritten)
        yield rewritten


def translate_graph(
    graph: Graph,
    translator: IdentifierTranslator,
    mode: ModePolicy = ModePolicy.STRICT,
    checker: ConstraintChecker | None = None,
    lenient: bool = False,
) -> TranslationResult[Graph]:
    """Translate an inbound graph to internal identifiers.

    Every statement is scanned before the result is returned, so a rejected
    result lists all of its violations, not just the first.

    With ``lenient`` set, statements that would be violations under ``mode``
    are dropped instead of reported. Under RELAXED, relaxable statements are
    still accepted and translated.
    """
    checker = checker or ConstraintChecker()
    violations: list[Violation] = []
    out = _new_graph_like(graph)
    for statement in _scan(graph, translator, mode, checker, violations, lenient):
        out.add(statement)

    logger.debug("Translated graph: %d in, %d out, %d violations",
                 len(graph), len(out), len(violations))
    return TranslationResult(value=out, violations=violations)


def externalize_graph(graph: Graph, translator: IdentifierTranslator) -> Graph:
    """Rewrite internal-domain subjects and objects to external URIs."""
    out = _new_graph_like(graph)
    for s, p, o in graph:
        out.add((translator.externalize_term(s), p, translator.externalize_term(o)))
    return out
