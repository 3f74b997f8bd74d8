"""SPARQL Update adapter — rdflib parse trees <-> the ldtranslate update model.

Parsing uses rdflib's SPARQL grammar and the same prologue, prefixed-name and
path resolution that rdflib applies before building its own algebra. The WHERE
clause is read from the parse tree rather than the algebra so that group
nesting survives the round trip.

OPTIONAL, MINUS, UNION and GRAPH become structural pattern elements whose
triples are translated. FILTER, BIND and VALUES are kept as SPARQL text. SERVICE,
sub-selects, property paths and operations other than INSERT/DELETE are
rejected with MalformedInput.
"""

from __future__ import annotations

import functools
import logging
from typing import Any

from pyparsing import ParseException
from rdflib import RDF, URIRef
from rdflib.paths import Path
from rdflib.plugins.sparql.algebra import (
    translatePName,
    translatePath,
    translatePrologue,
    translateQuads,
    traverse,
    triples,
)
from rdflib.plugins.sparql.parser import parseUpdate
from rdflib.plugins.sparql.parserutils import CompValue
from rdflib.term import Node

from .exceptions import MalformedInput
from .types import (
    BasicBlock,
    DeleteData,
    DeleteWhere,
    GraphPattern,
    Group,
    InsertData,
    MinusPattern,
    Modify,
    Opaque,
    OptionalPattern,
    PatternElement,
    Quad,
    Statement,
    UnionPattern,
    UpdateOperation,
    UpdateRequest,
)

logger = logging.getLogger(__name__)

_UNSUPPORTED_PATTERNS = {
    "ServiceGraphPattern": "SERVICE",
    "SubSelect": "sub-select",
}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_update(text: str, base: str | None = None) -> UpdateRequest:
    """Parse SPARQL Update text into an UpdateRequest.

    ``base`` resolves relative IRIs such as ``<>``. Raises MalformedInput on
    syntax errors and on constructs the update model does not represent.
    """
    try:
        parsed = parseUpdate(text)
    except ParseException as exc:
        raise MalformedInput(f"SPARQL Update was not parsable: {exc}") from exc

    operations: list[UpdateOperation] = []
    prologue = None
    for p, u in zip(parsed.prologue or [], parsed.request or []):
        try:
            prologue = translatePrologue(p, base, None, prologue)
            u = traverse(u, visitPost=functools.partial(translatePName, prologue=prologue))
            u = traverse(u, visitPost=translatePath)
        except Exception as exc:
            # rdflib reports unknown prefixes with a bare Exception
            raise MalformedInput(f"SPARQL Update was not parsable: {exc}") from exc
        operations.append(_to_operation(u))

    logger.debug("Parsed %d update operations", len(operations))
    return UpdateRequest(tuple(operations), base=base)


def _to_operation(u: CompValue) -> UpdateOperation:
    if u.name == "InsertData":
        return InsertData(_quads(u.quads))
    if u.name == "DeleteData":
        return DeleteData(_quads(u.quads))
    if u.name == "DeleteWhere":
        return DeleteWhere(_quads(u.quads))
    if u.name == "Modify":
        return _to_modify(u)
    raise MalformedInput(f"Unsupported update operation: {u.name}")


def _to_modify(u: CompValue) -> Modify:
    using: list[URIRef] = []
    using_named: list[URIRef] = []
    for clause in u.using or []:
        if clause.named is not None:
            using_named.append(clause.named)
        else:
            using.append(clause.default)

    return Modify(
        where=_to_group(u.where),
        delete_quads=_quads(u.delete.quads) if u.delete is not None else None,
        insert_quads=_quads(u.insert.quads) if u.insert is not None else None,
        with_graph=u.withClause,
        using=tuple(using),
        using_named=tuple(using_named),
    )


def _quads(quads: CompValue | None) -> tuple[Quad, ...]:
    if quads is None:
        return ()
    default_triples, named = translateQuads(quads)
    out = [Quad(s, p, o) for s, p, o in default_triples]
    for graph, graph_triples in named.items():
        out.extend(Quad(s, p, o, graph) for s, p, o in graph_triples)
    return tuple(out)


def _to_group(pattern: CompValue) -> Group:
    if pattern is None or pattern.name != "GroupGraphPatternSub":
        name = getattr(pattern, "name", type(pattern).__name__)
        keyword = _UNSUPPORTED_PATTERNS.get(name, name)
        raise MalformedInput(f"Unsupported WHERE pattern: {keyword}")
    return Group(tuple(_to_element(part) for part in pattern.part or []))


def _to_element(part: CompValue) -> PatternElement:
    if part.name == "TriplesBlock":
        return BasicBlock(_pattern_triples(part.triples))
    if part.name == "GroupOrUnionGraphPattern":
        groups = tuple(_to_group(g) for g in part.graph)
        return groups[0] if len(groups) == 1 else UnionPattern(groups)
    if part.name == "OptionalGraphPattern":
        return OptionalPattern(_to_group(part.graph))
    if part.name == "MinusGraphPattern":
        return MinusPattern(_to_group(part.graph))
    if part.name == "GraphGraphPattern":
        return GraphPattern(part.term, _to_group(part.graph))
    if part.name == "Filter":
        return Opaque(f"FILTER({_expr_text(part.expr)})")
    if part.name == "Bind":
        return Opaque(f"BIND({_expr_text(part.expr)} AS {_term(part.var)})")
    if part.name == "InlineData":
        return Opaque(_values_text(part))
    keyword = _UNSUPPORTED_PATTERNS.get(part.name, part.name)
    raise MalformedInput(f"Unsupported WHERE pattern: {keyword}")


def _pattern_triples(raw: Any) -> tuple[Statement, ...]:
    out = []
    for s, p, o in triples(raw):
        if isinstance(p, Path):
            raise MalformedInput(f"Unsupported WHERE pattern: property path {p}")
        out.append((s, p, o))
    return tuple(out)


# ---------------------------------------------------------------------------
# Expressions
#
# FILTER, BIND and VALUES are rendered back to text while parsing. Operator
# expressions are always parenthesized; a reparsed element renders to the
# same text.
# ---------------------------------------------------------------------------

_LOGICAL_OPERATORS = {
    "ConditionalOrExpression": " || ",
    "ConditionalAndExpression": " && ",
}

_UNARY_OPERATORS = {
    "UnaryNot": "!",
    "UnaryPlus": "+",
    "UnaryMinus": "-",
}


def _expr_text(expr: Any) -> str:
    if isinstance(expr, Node):
        return _term(expr)
    if not isinstance(expr, CompValue):
        raise MalformedInput(f"Unsupported expression: {expr!r}")

    name = expr.name
    if name in _LOGICAL_OPERATORS:
        if not expr.other:
            return _expr_text(expr.expr)
        operands = [expr.expr, *expr.other]
        return "(" + _LOGICAL_OPERATORS[name].join(_expr_text(e) for e in operands) + ")"
    if name == "RelationalExpression":
        if expr.op is None:
            return _expr_text(expr.expr)
        if expr.op in ("IN", "NOT IN"):
            return f"({_expr_text(expr.expr)} {expr.op} ({_args_text(expr.other)}))"
        return f"({_expr_text(expr.expr)} {expr.op} {_expr_text(expr.other)})"
    if name in ("AdditiveExpression", "MultiplicativeExpression"):
        if not expr.other:
            return _expr_text(expr.expr)
        text = _expr_text(expr.expr)
        for op, other in zip(expr.op, expr.other):
            text += f" {op} {_expr_text(other)}"
        return f"({text})"
    if name in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[name] + _expr_text(expr.expr)
    if name == "Function":
        distinct = "DISTINCT " if expr.distinct else ""
        return f"{_term(expr.iri)}({distinct}{_args_text(expr.expr)})"
    if name in ("Builtin_EXISTS", "Builtin_NOTEXISTS"):
        keyword = "EXISTS" if name == "Builtin_EXISTS" else "NOT EXISTS"
        return f"{keyword} {_pattern_text(_to_group(expr.graph))}"
    if name in ("Builtin_CONCAT", "Builtin_COALESCE"):
        return f"{name[len('Builtin_'):]}({_args_text(expr.arg)})"
    if name.startswith("Builtin_"):
        # arguments are stored in the order they were written
        args = []
        for value in expr.values():
            args.extend(value if isinstance(value, list) else [value])
        return f"{name[len('Builtin_'):]}({', '.join(_expr_text(a) for a in args)})"
    raise MalformedInput(f"Unsupported expression: {name}")


def _args_text(args: Any) -> str:
    # NIL, as in ``CONCAT()`` or ``IN ()``, arrives as rdf:nil
    if args is None or (isinstance(args, Node) and args == RDF.nil):
        return ""
    if not isinstance(args, list):
        args = [args]
    return ", ".join(_expr_text(a) for a in args)


def _values_text(part: CompValue) -> str:
    variables = " ".join(_term(v) for v in part.var or [])
    rows = []
    for row in part.value or []:
        values = row if isinstance(row, list) else [row]
        rows.append("(" + " ".join(_data_value_text(v) for v in values) + ")")
    body = "{ " + " ".join(rows) + " }" if rows else "{ }"
    return f"VALUES ({variables}) {body}"


def _data_value_text(value: Any) -> str:
    if isinstance(value, Node):
        return _term(value)
    if value == "UNDEF":
        return "UNDEF"
    raise MalformedInput(f"Unsupported VALUES entry: {value!r}")


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def _term(node: Node) -> str:
    return node.n3()


def _triple_text(triple: Statement) -> str:
    return " ".join(_term(t) for t in triple) + " ."


def _quads_text(quads: tuple[Quad, ...]) -> str:
    lines = [_triple_text(q.triple) for q in quads if q.graph is None]

    # group named-graph quads, keeping first-seen graph order
    named: dict[Node, list[Quad]] = {}
    for q in quads:
        if q.graph is not None:
            named.setdefault(q.graph, []).append(q)
    for graph, graph_quads in named.items():
        body = " ".join(_triple_text(q.triple) for q in graph_quads)
        lines.append(f"GRAPH {_term(graph)} {{ {body} }}")

    return "{ " + " ".join(lines) + " }" if lines else "{ }"


def _pattern_text(element: PatternElement) -> str:
    if isinstance(element, Group):
        inner = " ".join(_pattern_text(e) for e in element.elements)
        return "{ " + inner + " }" if inner else "{ }"
    if isinstance(element, BasicBlock):
        return " ".join(_triple_text(t) for t in element.triples)
    if isinstance(element, OptionalPattern):
        return "OPTIONAL " + _pattern_text(element.group)
    if isinstance(element, MinusPattern):
        return "MINUS " + _pattern_text(element.group)
    if isinstance(element, UnionPattern):
        return " UNION ".join(_pattern_text(g) for g in element.groups)
    if isinstance(element, GraphPattern):
        return f"GRAPH {_term(element.name)} {_pattern_text(element.group)}"
    if isinstance(element, Opaque):
        return element.text
    raise TypeError(f"Unknown pattern element: {element!r}")


def _modify_text(op: Modify) -> str:
    parts = []
    if op.with_graph is not None:
        parts.append(f"WITH {_term(op.with_graph)}")
    if op.delete_quads is not None:
        parts.append("DELETE " + _quads_text(op.delete_quads))
    if op.insert_quads is not None:
        parts.append("INSERT " + _quads_text(op.insert_quads))
    parts.extend(f"USING {_term(g)}" for g in op.using)
    parts.extend(f"USING NAMED {_term(g)}" for g in op.using_named)
    parts.append("WHERE " + _pattern_text(op.where))
    return "\n".join(parts)


def serialize_operation(op: UpdateOperation) -> str:
    if isinstance(op, InsertData):
        return "INSERT DATA " + _quads_text(op.quads)
    if isinstance(op, DeleteData):
        return "DELETE DATA " + _quads_text(op.quads)
    if isinstance(op, DeleteWhere):
        return "DELETE WHERE " + _quads_text(op.quads)
    if isinstance(op, Modify):
        return _modify_text(op)
    raise TypeError(f"Unknown update operation: {op!r}")


def serialize_update(request: UpdateRequest) -> str:
    """Render an UpdateRequest as SPARQL Update text with absolute IRIs."""
    return " ;\n".join(serialize_operation(op) for op in request.operations)
