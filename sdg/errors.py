"""Error types shared across the package."""

from __future__ import annotations

from typing import Optional


class MalformedStatisticsError(ValueError):
    """Raised when histogram statistics are internally inconsistent."""

    def __init__(self, message: str, column: Optional[str] = None) -> None:
        if column is not None:
            message = f"{column}: {message}"
        super().__init__(message)
        self.column = column
