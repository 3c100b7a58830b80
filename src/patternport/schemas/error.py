from typing import Any, Optional

from pydantic import BaseModel


class MCPError(BaseModel):
    """Error payload returned by MCP tools instead of raising."""

    error: str
    details: Optional[Any] = None

    @classmethod
    def from_exception(cls, exc: Exception, **details: Any) -> "MCPError":
        return cls(error=str(exc), details=details or None)
