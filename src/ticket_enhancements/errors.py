"""
Exceptions raised by the resolution engine.
"""
from typing import Optional


class EnhancementError(Exception):
    """Base exception for all resolution errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for JSON responses."""
        return {
            "success": False,
            "error": self.message,
            "details": self.details,
        }


class InvalidContextError(EnhancementError, ValueError):
    """A ticket context is missing a required scope field."""
    pass


class RuleIntegrityError(EnhancementError, RuntimeError):
    """More than one active row matched a single scope."""
    pass
