"""IdentifierTranslator — external URIs <-> internal resource identifiers.

Translation is domain-membership-based string rewriting: a URI under the
configured base URI has that prefix swapped for the internal prefix, and the
reverse. It never looks at what a statement means.

  http://localhost:8080/rest/a/b   <->   info:fedora/a/b
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from rdflib import URIRef
from rdflib.term import Node

from .exceptions import TranslationError

DEFAULT_INTERNAL_PREFIX = "info:fedora/"

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_INVALID_CHARS = re.compile(r'[\s<>"{}|\\^`]')


def check_uri(uri: str) -> str:
    """Return ``uri`` unchanged, or raise TranslationError if it is not a URI."""
    if not isinstance(uri, str) or not uri:
        raise TranslationError(str(uri), "empty or not a string")
    if not _SCHEME.match(uri):
        raise TranslationError(uri, "missing scheme")
    bad = _INVALID_CHARS.search(uri)
    if bad:
        raise TranslationError(uri, f"illegal character {bad.group()!r}")
    return uri


@dataclass(frozen=True)
class IdentifierTranslator:
    """Bidirectional mapping configured by a base URI and an internal prefix.

    Instances hold no per-call state and may be shared between requests.
    """
    base_uri: str
    internal_prefix: str = DEFAULT_INTERNAL_PREFIX

    def __post_init__(self) -> None:
        check_uri(self.base_uri)
        check_uri(self.internal_prefix)

    # -----------------------------------------------------------------------
    # Domain predicates
    # -----------------------------------------------------------------------

    def is_internal_domain(self, uri: str) -> bool:
        return str(uri).startswith(self.internal_prefix)

    def is_external_domain(self, uri: str) -> bool:
        return str(uri).startswith(self.base_uri)

    # -----------------------------------------------------------------------
    # String translation
    # -----------------------------------------------------------------------

    def to_internal(self, external_uri: str) -> str:
        """Translate an external URI; URIs outside the domain come back unchanged.

        Raises TranslationError only if ``external_uri`` is not a URI.
        """
        check_uri(external_uri)
        if not self.is_external_domain(external_uri):
            return str(external_uri)
        return self.internal_prefix + external_uri[len(self.base_uri):]

    def to_external(self, internal_id: str) -> str:
        if not self.is_internal_domain(internal_id):
            return str(internal_id)
        return self.base_uri + internal_id[len(self.internal_prefix):]

    # -----------------------------------------------------------------------
    # Term translation
    # -----------------------------------------------------------------------

    def translate_term(self, node: Node) -> Node:
        """Inbound: rewrite a URIRef into the internal domain. Other terms pass through."""
        if not isinstance(node, URIRef):
            return node
        translated = self.to_internal(str(node))
        return node if translated == str(node) else URIRef(translated)

    def externalize_term(self, node: Node) -> Node:
        """Outbound: rewrite an internal-domain URIRef to its external URI."""
        if not isinstance(node, URIRef) or not self.is_internal_domain(node):
            return node
        return URIRef(self.to_external(str(node)))
