"""Error types and helpers for the catalog pipeline."""
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_SYNC_ERROR = "Failed to synchronize catalog data"


class CatalogError(Exception):
    """Base exception for all catalog errors."""


class SourceUnavailableError(CatalogError):
    """The remote catalog could not be reached or answered with an error."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CatalogConfigError(CatalogError):
    """Configuration could not be loaded or validated."""


class ErrorHandler:
    def describe(self, exc: BaseException) -> str:
        """Return a single human-readable message for ``exc``."""
        message = str(exc).strip()
        return message or DEFAULT_SYNC_ERROR

    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        if isinstance(exc, CatalogError):
            logger.warning("Catalog operation failed: %s", exc)
        else:
            logger.error("Unhandled exception in catalog pipeline: %s", exc, exc_info=True)
        return {
            "message": self.describe(exc) if isinstance(exc, CatalogError) else "An internal error occurred. Please try again later.",
            "fallback": True,
            "metadata": {"error": str(exc), "type": type(exc).__name__, "context": context or {}},
        }
