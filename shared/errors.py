"""User-facing error formatting for the Loom tools.

Converts internal exceptions raised at system boundaries (malformed
programme documents, malformed standard definitions, bad filter values)
into structured, user-safe error envelopes. Technical detail is kept for
logs and never included in what is sent to the editor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class UserFriendlyError:
    """A structured error designed for end-user consumption.

    Attributes:
        message: Clear description for the user.
        suggestion: Actionable guidance.
        component: Originating subsystem (e.g. "weave").
        error_code: Machine-readable identifier (e.g. "DOC_005").
        technical_detail: Debugging info for logs only -- never shown to users.
    """

    message: str
    suggestion: str
    component: str
    error_code: str
    technical_detail: str = ""

    def to_dict(self) -> dict[str, str]:
        """Serialize for API responses (excludes technical_detail).

        Returns:
            Dictionary safe for sending to end users.
        """
        return {
            "message": self.message,
            "suggestion": self.suggestion,
            "component": self.component,
            "error_code": self.error_code,
        }


class ErrorFormatter:
    """Convert internal exceptions to user-friendly messages.

    All methods return a ``UserFriendlyError`` and never expose internal
    paths, stack traces, or implementation details to the end user.

    Args:
        component: Subsystem name stamped on every formatted error.
    """

    def __init__(self, component: str = "weave") -> None:
        self.component = component

    def format_document_error(self, error: Exception) -> UserFriendlyError:
        """Format an error raised while reading a programme document.

        Args:
            error: The caught exception.

        Returns:
            User-friendly error with actionable suggestion.
        """
        return self._format(error, code_prefix="DOC")

    def format_standards_error(self, error: Exception) -> UserFriendlyError:
        """Format an error raised while reading award standard definitions.

        Args:
            error: The caught exception.

        Returns:
            User-friendly error with actionable suggestion.
        """
        return self._format(error, code_prefix="STD")

    def format_query_error(self, error: Exception) -> UserFriendlyError:
        """Format an error caused by invalid request parameters.

        Args:
            error: The caught exception.

        Returns:
            User-friendly error with actionable suggestion.
        """
        return self._format(error, code_prefix="QRY")

    # ------------------------------------------------------------------

    def _format(self, error: Exception, *, code_prefix: str) -> UserFriendlyError:
        """Shared formatting logic.

        Args:
            error: The caught exception.
            code_prefix: Short prefix for error code.

        Returns:
            Structured error with safe user message.
        """
        message, suggestion, code_suffix = _classify_error(error)
        formatted = UserFriendlyError(
            message=message,
            suggestion=suggestion,
            component=self.component,
            error_code=f"{code_prefix}_{code_suffix}",
            technical_detail=repr(error),
        )
        logger.info("%s: %s", formatted.error_code, formatted.technical_detail)
        return formatted


def _classify_error(error: Exception) -> tuple[str, str, str]:
    """Map an exception to (message, suggestion, code_suffix).

    Args:
        error: The caught exception.

    Returns:
        Tuple of user message, suggestion text, and error code suffix.
    """
    if isinstance(error, ValueError):
        return (
            "Invalid input was provided.",
            "Check the input values and try again.",
            "005",
        )
    return (
        "An unexpected error occurred.",
        "If this keeps happening, please report the issue.",
        "999",
    )

