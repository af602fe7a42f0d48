from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CartError(Exception):
    """Base error envelope. The CLI prints these; core code raises them."""

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else "<cart>"
        return f"{loc}: {self.code}: {self.message}"


class CartLoadError(CartError):
    pass


class CartValidationError(CartError):
    pass


class MetafieldDecodeError(CartError):
    pass


class BundleCompositionError(CartError):
    pass
