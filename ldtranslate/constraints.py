"""ConstraintChecker — classifies statements against the managed-property policy.

Rules, applied in order:

  1. predicate is managed                      -> MANAGED_PROPERTY (never relaxable)
  2. type assertion, object hard-restricted    -> MANAGED_TYPE (never relaxable)
     type assertion, object soft-managed       -> RELAXABLE_MANAGED_PROPERTY
  3. otherwise                                 -> allowed (None)

The policy table is an immutable lookup supplied by the repository.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from rdflib import Namespace, RDF, URIRef
from rdflib.term import Node

from .types import Statement, Violation, ViolationKind

FEDORA = Namespace("http://fedora.info/definitions/v4/repository#")
LDP = Namespace("http://www.w3.org/ns/ldp#")
MEMENTO = Namespace("http://mementoweb.org/ns#")
PREMIS = Namespace("http://www.loc.gov/premis/rdf/v1#")


def _uris(values) -> frozenset[URIRef]:
    return frozenset(URIRef(str(v)) for v in values)


@dataclass(frozen=True)
class PolicyTable:
    """Managed predicates and types, as configured for the repository."""
    managed_predicates: frozenset[URIRef] = frozenset()
    managed_namespaces: tuple[str, ...] = ()
    restricted_types: frozenset[URIRef] = frozenset()
    restricted_type_namespaces: tuple[str, ...] = ()
    relaxable_types: frozenset[URIRef] = frozenset()
    type_predicates: frozenset[URIRef] = field(default_factory=lambda: frozenset({RDF.type}))

    @classmethod
    def build(
        cls,
        managed_predicates=(),
        managed_namespaces=(),
        restricted_types=(),
        restricted_type_namespaces=(),
        relaxable_types=(),
        type_predicates=(RDF.type,),
    ) -> PolicyTable:
        """Build a table from plain strings or URIRefs."""
        return cls(
            managed_predicates=_uris(managed_predicates),
            managed_namespaces=tuple(str(ns) for ns in managed_namespaces),
            restricted_types=_uris(restricted_types),
            restricted_type_namespaces=tuple(str(ns) for ns in restricted_type_namespaces),
            relaxable_types=_uris(relaxable_types),
            type_predicates=_uris(type_predicates),
        )

    @classmethod
    def default(cls) -> PolicyTable:
        """The repository's built-in table."""
        return cls.build(
            managed_predicates=[
                LDP.contains,
                PREMIS.hasSize,
                PREMIS.hasMessageDigest,
            ],
            managed_namespaces=[str(FEDORA), str(MEMENTO)],
            restricted_types=[
                LDP.Container,
                LDP.BasicContainer,
                LDP.DirectContainer,
                LDP.IndirectContainer,
                LDP.NonRDFSource,
                MEMENTO.Memento,
                MEMENTO.TimeMap,
            ],
            restricted_type_namespaces=[str(FEDORA)],
            relaxable_types=[FEDORA.Resource, FEDORA.Container, FEDORA.Binary],
        )

    # -----------------------------------------------------------------------
    # Lookups
    # -----------------------------------------------------------------------

    def is_managed_predicate(self, predicate: Node) -> bool:
        if not isinstance(predicate, URIRef):
            return False
        if predicate in self.managed_predicates:
            return True
        return any(predicate.startswith(ns) for ns in self.managed_namespaces)

    def is_type_predicate(self, predicate: Node) -> bool:
        return isinstance(predicate, URIRef) and predicate in self.type_predicates

    def is_relaxable_type(self, obj: Node) -> bool:
        return isinstance(obj, URIRef) and obj in self.relaxable_types

    def is_restricted_type(self, obj: Node) -> bool:
        if not isinstance(obj, URIRef) or obj in self.relaxable_types:
            return False
        if obj in self.restricted_types:
            return True
        return any(obj.startswith(ns) for ns in self.restricted_type_namespaces)


class ConstraintChecker:
    """Classifies single statements. Holds only the immutable policy table."""

    def __init__(self, policy: PolicyTable | None = None) -> None:
        self.policy = policy if policy is not None else PolicyTable.default()

    def classify(self, statement: Statement) -> Violation | None:
        """Return the statement's Violation, or None if it may be written."""
        _, predicate, obj = statement

        if self.policy.is_managed_predicate(predicate):
            return Violation(
                kind=ViolationKind.MANAGED_PROPERTY,
                statement=statement,
                message=f"Could not persist triple containing predicate {predicate} "
                        f"to RDFSource: The server managed predicate ({predicate}) "
                        f"cannot be modified by the client.",
            )

        if self.policy.is_type_predicate(predicate):
            if self.policy.is_restricted_type(obj):
                return Violation(
                    kind=ViolationKind.MANAGED_TYPE,
                    statement=statement,
                    message=f"The server managed type ({obj}) cannot be modified by the client.",
                )
            if self.policy.is_relaxable_type(obj):
                return Violation(
                    kind=ViolationKind.RELAXABLE_MANAGED_PROPERTY,
                    statement=statement,
                    message=f"The server managed type ({obj}) cannot be modified by the "
                            f"client unless server managed properties are relaxed.",
                )

        return None

    def touches_managed(self, statement: Statement) -> bool:
        """True if the statement uses a managed predicate or asserts any managed type."""
        _, predicate, obj = statement
        if self.policy.is_managed_predicate(predicate):
            return True
        return self.policy.is_type_predicate(predicate) and (
            self.policy.is_restricted_type(obj) or self.policy.is_relaxable_type(obj)
        )
