"""Request body parsing — bytes plus a media type into an rdflib Graph."""

from __future__ import annotations

import logging
from typing import IO, Union
from xml.sax import SAXParseException

from rdflib import Graph
from rdflib.exceptions import ParserError
from rdflib.plugins.parsers.notation3 import BadSyntax

from .exceptions import MalformedInput, UnsupportedMediaType

logger = logging.getLogger(__name__)

Body = Union[bytes, str, IO[bytes]]

# Media type -> rdflib parser name
_FORMAT_MAP = {
    "text/turtle": "turtle",
    "application/x-turtle": "turtle",
    "text/n3": "n3",
    "text/rdf+n3": "n3",
    "application/n-triples": "nt",
    "application/rdf+xml": "xml",
    "application/ld+json": "json-ld",
}


def rdf_format_for(content_type: str) -> str:
    """Map a media type (parameters such as charset are ignored) to a parser name."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    try:
        return _FORMAT_MAP[media_type]
    except KeyError:
        raise UnsupportedMediaType(media_type) from None


def parse_body(body: Body | None, content_type: str, base: str) -> Graph | None:
    """Parse a request body, resolving relative IRIs against ``base``.

    Returns None for an absent body. Raises UnsupportedMediaType or
    MalformedInput; no translation is attempted on either.
    """
    if body is None:
        return None

    fmt = rdf_format_for(content_type)
    graph = Graph()
    try:
        if hasattr(body, "read"):
            graph.parse(source=body, format=fmt, publicID=base)
        else:
            graph.parse(data=body, format=fmt, publicID=base)
    except (BadSyntax, SAXParseException, ParserError, ValueError) as exc:
        raise MalformedInput(f"RDF was not parsable: {exc}") from exc

    logger.debug("Parsed %d statements as %s", len(graph), fmt)
    return graph
