"""
Exceptions raised by the diagram engine.
"""

from typing import Any, Optional


class DiagramEngineError(Exception):
    """Base exception for all diagram engine errors."""
    pass


class MalformedInputError(DiagramEngineError, ValueError):
    """Raised when input does not match the diagram schema."""

    def __init__(self, message: str, errors: Optional[list[dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(DiagramEngineError, KeyError):
    """Raised when an operation references a shape or connector that does not exist."""

    def __init__(self, kind: str, item_id: str):
        super().__init__(f"{kind.capitalize()} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return self.args[0]
