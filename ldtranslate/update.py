"""UpdateRewriter — rewrites SPARQL Update requests into the internal domain.

Each rewriting function returns a ``(rewritten, violations)`` pair; callers
merge the lists. No operation stops at its first violation, and the request as
a whole is only rejected after every operation has been scanned.

SPARQL Update bodies have no lenient drop path: LENIENT behaves as STRICT
here, so relaxable violations are errors unless the mode is RELAXED. Hard
violations are errors in every mode.

Graph names of quads and of GRAPH patterns are never translated. FILTER, BIND
and VALUES elements are carried through as they are.
"""

from __future__ import annotations

import logging

from .constraints import ConstraintChecker
from .identifiers import IdentifierTranslator
from .types import (
    BasicBlock,
    DeleteData,
    DeleteWhere,
    GraphPattern,
    Group,
    InsertData,
    MinusPattern,
    ModePolicy,
    Modify,
    Opaque,
    OptionalPattern,
    PatternElement,
    Quad,
    Statement,
    TranslationResult,
    UnionPattern,
    UpdateOperation,
    UpdateRequest,
    Violation,
)

logger = logging.getLogger(__name__)


class UpdateRewriter:
    """Rewrites update operations with one translator, checker and mode."""

    def __init__(
        self,
        translator: IdentifierTranslator,
        mode: ModePolicy = ModePolicy.STRICT,
        checker: ConstraintChecker | None = None,
    ) -> None:
        self.translator = translator
        self.relaxed = mode == ModePolicy.RELAXED
        self.checker = checker or ConstraintChecker()

    # -----------------------------------------------------------------------
    # Statements and quads
    # -----------------------------------------------------------------------

    def check(self, triple: Statement) -> Violation | None:
        """The triple's violation, unless the mode accepts it."""
        violation = self.checker.classify(triple)
        if violation is None or (violation.kind.relaxable and self.relaxed):
            return None
        return violation

    def translate_triple(self, triple: Statement) -> Statement:
        s, p, o = triple
        return (self.translator.translate_term(s), p, self.translator.translate_term(o))

    def rewrite_triples(
        self, triples: tuple[Statement, ...]
    ) -> tuple[tuple[Statement, ...], list[Violation]]:
        kept: list[Statement] = []
        violations: list[Violation] = []
        for triple in triples:
            violation = self.check(triple)
            if violation is not None:
                violations.append(violation)
                continue
            kept.append(self.translate_triple(triple))
        return tuple(kept), violations

    def rewrite_quads(
        self, quads: tuple[Quad, ...]
    ) -> tuple[tuple[Quad, ...], list[Violation]]:
        kept: list[Quad] = []
        violations: list[Violation] = []
        for quad in quads:
            violation = self.check(quad.triple)
            if violation is not None:
                violations.append(violation)
                continue
            translated = quad.with_triple(self.translate_triple(quad.triple))
            logger.debug("Translated quad is: %s", translated)
            kept.append(translated)
        return tuple(kept), violations

    def _rewrite_optional_quads(
        self, quads: tuple[Quad, ...] | None
    ) -> tuple[tuple[Quad, ...] | None, list[Violation]]:
        if quads is None:
            return None, []
        return self.rewrite_quads(quads)

    # -----------------------------------------------------------------------
    # WHERE patterns
    # -----------------------------------------------------------------------

    def rewrite_pattern(self, element: PatternElement) -> tuple[PatternElement, list[Violation]]:
        """Rewrite a pattern tree, preserving group structure and order.

        Triples inside OPTIONAL, MINUS, UNION and GRAPH are rewritten like any
        other block. Opaque elements come back unchanged.
        """
        if isinstance(element, Group):
            return self._rewrite_group(element)
        if isinstance(element, BasicBlock):
            triples, violations = self.rewrite_triples(element.triples)
            return BasicBlock(triples), violations
        if isinstance(element, OptionalPattern):
            group, violations = self._rewrite_group(element.group)
            return OptionalPattern(group), violations
        if isinstance(element, MinusPattern):
            group, violations = self._rewrite_group(element.group)
            return MinusPattern(group), violations
        if isinstance(element, UnionPattern):
            groups: list[Group] = []
            violations = []
            for alternative in element.groups:
                group, found = self._rewrite_group(alternative)
                groups.append(group)
                violations.extend(found)
            return UnionPattern(tuple(groups)), violations
        if isinstance(element, GraphPattern):
            group, violations = self._rewrite_group(element.group)
            return GraphPattern(element.name, group), violations
        if isinstance(element, Opaque):
            return element, []
        raise TypeError(f"Unknown pattern element: {element!r}")

    def _rewrite_group(self, group: Group) -> tuple[Group, list[Violation]]:
        children: list[PatternElement] = []
        violations: list[Violation] = []
        for child in group.elements:
            rewritten, found = self.rewrite_pattern(child)
            children.append(rewritten)
            violations.extend(found)
        return Group(tuple(children)), violations

    # -----------------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------------

    def rewrite_operation(self, op: UpdateOperation) -> tuple[UpdateOperation, list[Violation]]:
        """Rewrite one operation into the same variant."""
        if isinstance(op, InsertData):
            quads, violations = self.rewrite_quads(op.quads)
            return InsertData(quads), violations
        if isinstance(op, DeleteData):
            quads, violations = self.rewrite_quads(op.quads)
            return DeleteData(quads), violations
        if isinstance(op, DeleteWhere):
            quads, violations = self.rewrite_quads(op.quads)
            return DeleteWhere(quads), violations
        if isinstance(op, Modify):
            return self._rewrite_modify(op)
        raise TypeError(f"Unknown update operation: {op!r}")

    def _rewrite_modify(self, op: Modify) -> tuple[Modify, list[Violation]]:
        delete_quads, delete_violations = self._rewrite_optional_quads(op.delete_quads)
        insert_quads, insert_violations = self._rewrite_optional_quads(op.insert_quads)
        where, where_violations = self.rewrite_pattern(op.where)
        rebuilt = Modify(
            where=where,
            delete_quads=delete_quads,
            insert_quads=insert_quads,
            with_graph=op.with_graph,
            using=op.using,
            using_named=op.using_named,
        )
        return rebuilt, delete_violations + insert_violations + where_violations

    def rewrite(self, request: UpdateRequest) -> TranslationResult[UpdateRequest]:
        operations: list[UpdateOperation] = []
        violations: list[Violation] = []
        for op in request.operations:
            rewritten, found = self.rewrite_operation(op)
            if found:
                logger.debug("%s operation has %d violations", type(op).__name__, len(found))
            operations.append(rewritten)
            violations.extend(found)
        return TranslationResult(
            value=UpdateRequest(tuple(operations), base=request.base),
            violations=violations,
        )


def rewrite_update(
    request: UpdateRequest,
    translator: IdentifierTranslator,
    mode: ModePolicy = ModePolicy.STRICT,
    checker: ConstraintChecker | None = None,
) -> TranslationResult[UpdateRequest]:
    """Rewrite every operation of ``request``; reject only after all are scanned."""
    return UpdateRewriter(translator, mode, checker).rewrite(request)
