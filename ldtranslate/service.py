"""HttpRdfService — the request-facing entry points.

Parses a request body, translates it with the process-wide settings and
raises ConstraintViolationError listing every violation when it is rejected.
Mapping errors onto HTTP responses is the caller's business.
"""

from __future__ import annotations

import logging

from rdflib import Graph

from .config import TranslationConfig
from .constraints import ConstraintChecker
from .exceptions import ConstraintViolationError
from .graph import externalize_graph, translate_graph
from .identifiers import IdentifierTranslator
from .parsing import Body, parse_body
from .sparql import parse_update, serialize_update
from .types import TranslationResult
from .update import rewrite_update

logger = logging.getLogger(__name__)


class HttpRdfService:
    """Translates request bodies between external URIs and internal identifiers."""

    def __init__(self, config: TranslationConfig | None = None) -> None:
        self.config = config or TranslationConfig()
        self.checker = ConstraintChecker(self.config.policy)

    def _unwrap(self, result: TranslationResult, what: str):
        if not result.ok:
            logger.info("Rejected %s with %d violations", what, len(result.violations))
            raise ConstraintViolationError(result.violations)
        return result.value

    def body_to_internal_graph(
        self,
        resource_id: str,
        body: Body | None,
        content_type: str,
        translator: IdentifierTranslator,
        lenient: bool = False,
    ) -> Graph | None:
        """Parse and translate a graph body for the resource ``resource_id``.

        ``resource_id`` is the internal identifier; relative IRIs in the body
        resolve against its external URI. Returns None for an absent body.
        A ``lenient`` request drops disallowed statements instead of
        rejecting the body, whatever the process-wide mode.
        """
        external_uri = translator.to_external(resource_id)
        graph = parse_body(body, content_type, external_uri)
        if graph is None:
            return None
        mode = self.config.mode_for(lenient)
        result = translate_graph(graph, translator, mode, self.checker, lenient=lenient)
        return self._unwrap(result, f"body for {external_uri}")

    def graph_to_external(self, graph: Graph, translator: IdentifierTranslator) -> Graph:
        return externalize_graph(graph, translator)

    def patch_to_internal(
        self,
        resource_id: str,
        update_text: str,
        translator: IdentifierTranslator,
    ) -> str:
        """Translate a SPARQL Update body and return it as text."""
        external_uri = translator.to_external(resource_id)
        request = parse_update(update_text, base=external_uri)
        result = rewrite_update(request, translator, self.config.mode, self.checker)
        return serialize_update(self._unwrap(result, f"update for {external_uri}"))
