"""Core types for ldtranslate — statements, violations, modes and the update model.

A Statement is an rdflib triple ``(subject, predicate, object)``. Subjects and
objects are URIRef, Literal, BNode or (inside SPARQL patterns) Variable; the
predicate is a URIRef or a Variable.

The SPARQL Update model is a closed set of variants:

  UpdateOperation = InsertData | DeleteData | DeleteWhere | Modify
  PatternElement  = Group | BasicBlock | OptionalPattern | MinusPattern
                  | UnionPattern | GraphPattern | Opaque

Every value here is immutable; rewriting produces new values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar, Union

from rdflib.term import Node, URIRef

from .exceptions import ConstraintViolationError

Statement = tuple[Node, Node, Node]

T = TypeVar("T")


# ---------------------------------------------------------------------------
# ModePolicy — enforcement mode for server-managed statements
# ---------------------------------------------------------------------------

class ModePolicy(Enum):
    """How server-managed statements are enforced.

    STRICT:  every violation, including relaxable ones, is an error.
    LENIENT: managed statements in graph bodies are dropped silently.
    RELAXED: relaxable violations are accepted; hard violations stay errors.
    """
    STRICT = "strict"
    LENIENT = "lenient"
    RELAXED = "relaxed"

    @classmethod
    def parse(cls, value: str | ModePolicy) -> ModePolicy:
        if isinstance(value, ModePolicy):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown server managed mode: {value!r}") from None


# ---------------------------------------------------------------------------
# Violations
# ---------------------------------------------------------------------------

class ViolationKind(Enum):
    MANAGED_TYPE = "ManagedTypeViolation"
    MANAGED_PROPERTY = "ManagedPropertyViolation"
    RELAXABLE_MANAGED_PROPERTY = "RelaxableManagedPropertyViolation"

    @property
    def relaxable(self) -> bool:
        return self is ViolationKind.RELAXABLE_MANAGED_PROPERTY


@dataclass(frozen=True)
class Violation:
    """A statement the client is not permitted to write, and why."""
    kind: ViolationKind
    statement: Statement
    message: str

    def __repr__(self) -> str:
        return f"{self.kind.value}({self.message})"


@dataclass
class TranslationResult(Generic[T]):
    """Outcome of a translation: the rewritten value, or every violation found.

    ``value`` is always populated with the rewritten value so that callers
    may inspect it, but it must not be committed unless ``ok`` is true.
    """
    value: T
    violations: list[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def unwrap(self) -> T:
        """Return the value, or raise ConstraintViolationError listing every violation."""
        if self.violations:
            raise ConstraintViolationError(self.violations)
        return self.value

    def summary(self) -> str:
        lines = []
        status = "ACCEPTED" if self.ok else "REJECTED"
        lines.append(f"Translation: {status}")
        lines.append("-" * 50)
        if self.violations:
            lines.append(f"  Violations ({len(self.violations)}):")
            for v in self.violations:
                lines.append(f"    - [{v.kind.value}] {v.message}")
        else:
            lines.append("  No violations found.")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Quad — a statement inside a named (or default) graph
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Quad:
    """A triple plus its graph name; ``graph`` is None for the default graph."""
    subject: Node
    predicate: Node
    object: Node
    graph: Node | None = None

    @property
    def triple(self) -> Statement:
        return (self.subject, self.predicate, self.object)

    def with_triple(self, triple: Statement) -> Quad:
        s, p, o = triple
        return Quad(s, p, o, self.graph)


# ---------------------------------------------------------------------------
# WHERE pattern tree
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BasicBlock:
    """A block of triple patterns; may contain variables."""
    triples: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class Group:
    """An ordered group of pattern elements. Purely structural."""
    elements: tuple[PatternElement, ...] = ()


@dataclass(frozen=True)
class OptionalPattern:
    """``OPTIONAL { ... }``."""
    group: Group = field(default_factory=Group)


@dataclass(frozen=True)
class MinusPattern:
    """``MINUS { ... }``."""
    group: Group = field(default_factory=Group)


@dataclass(frozen=True)
class UnionPattern:
    """``{ ... } UNION { ... }``; two or more alternatives."""
    groups: tuple[Group, ...] = ()


@dataclass(frozen=True)
class GraphPattern:
    """``GRAPH name { ... }``. The graph name is a URIRef or a Variable."""
    name: Node
    group: Group = field(default_factory=Group)


@dataclass(frozen=True)
class Opaque:
    """A FILTER, BIND or VALUES element held as SPARQL text.

    Its contents are neither translated nor checked.
    """
    text: str


PatternElement = Union[
    Group, BasicBlock, OptionalPattern, MinusPattern, UnionPattern, GraphPattern, Opaque
]


# ---------------------------------------------------------------------------
# Update operations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InsertData:
    quads: tuple[Quad, ...] = ()


@dataclass(frozen=True)
class DeleteData:
    quads: tuple[Quad, ...] = ()


@dataclass(frozen=True)
class DeleteWhere:
    quads: tuple[Quad, ...] = ()


@dataclass(frozen=True)
class Modify:
    """``WITH ... DELETE {...} INSERT {...} USING ... WHERE {...}``.

    ``delete_quads`` / ``insert_quads`` are None when the clause is absent,
    which is distinct from a present but empty clause.
    """
    where: Group = field(default_factory=Group)
    delete_quads: tuple[Quad, ...] | None = None
    insert_quads: tuple[Quad, ...] | None = None
    with_graph: URIRef | None = None
    using: tuple[URIRef, ...] = ()
    using_named: tuple[URIRef, ...] = ()


UpdateOperation = Union[InsertData, DeleteData, DeleteWhere, Modify]


@dataclass(frozen=True)
class UpdateRequest:
    """An ordered sequence of update operations."""
    operations: tuple[UpdateOperation, ...] = ()
    base: str | None = None
