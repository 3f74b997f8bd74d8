"""Exceptions raised by ldtranslate.

Policy violations are not exceptions while a body is being scanned; they are
collected into a TranslationResult. ConstraintViolationError is raised only
when a caller asks for a rejected result to be unwrapped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import Violation


class LDTranslateError(Exception):
    """Base exception for all ldtranslate errors."""
    pass


class TranslationError(LDTranslateError):
    """Raised when a URI is syntactically invalid and cannot be translated."""

    def __init__(self, uri: str, reason: str = "") -> None:
        self.uri = uri
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Cannot translate URI {uri!r}{detail}")


class MalformedInput(LDTranslateError):
    """Raised when a request body or update cannot be parsed."""
    pass


class UnsupportedMediaType(LDTranslateError):
    """Raised when a request body's media type is not an RDF format we read."""

    def __init__(self, media_type: str) -> None:
        self.media_type = media_type
        super().__init__(f"Media type {media_type} is not a valid RDF format")


class ConstraintViolationError(LDTranslateError):
    """Raised with every violation found in a rejected request.

    Attributes:
        violations: the complete list, in the order they were found
    """

    def __init__(self, violations: list[Violation]) -> None:
        self.violations = list(violations)
        super().__init__(self._format())

    def _format(self) -> str:
        count = len(self.violations)
        lines = [f"{count} constraint violation{'s' if count != 1 else ''}:"]
        for v in self.violations:
            lines.append(f"  {v.kind.value}: {v.message}")
        return "\n".join(lines)
