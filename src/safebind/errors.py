"""Domain-specific errors for safebind."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .diagnostics import Diagnostic


class SafeBindError(Exception):
    """Base error for safebind."""


class DeclarationLoadError(SafeBindError):
    """Raised when parsed declarations cannot be loaded or are malformed."""


class ConfigError(SafeBindError):
    """Raised when a projector configuration is invalid."""


class UnsupportedTypeError(SafeBindError):
    """Raised when a native type has no binding-language equivalent."""


class UnresolvedReferenceError(SafeBindError):
    """Raised when a referenced type or module is not registered."""

    def __init__(self, message: str, *, key: tuple | None = None) -> None:
        super().__init__(message)
        # Registry key of the missing type, when known.
        self.key = key


class AmbiguousOverloadError(SafeBindError):
    """Raised when no caption strategy distinguishes a group of overloads."""


class InvalidTemplateArgumentsError(SafeBindError):
    """Raised when template arguments do not fit the template."""


class TemplateResolutionError(InvalidTemplateArgumentsError):
    """Raised when template instantiations can never be resolved."""


class ReservedIdentifierCollisionError(SafeBindError):
    """Raised when an escaped identifier collides with an existing name."""


class StructuralInvariantError(SafeBindError):
    """Raised when a declaration violates a structural invariant."""


class UnplacedEntityError(SafeBindError):
    """Raised when a method or type is not placed in any module."""


class ExchangeDecodeError(SafeBindError):
    """Raised when an exchanged payload cannot be decoded from MessagePack."""


class ProjectionFailedError(SafeBindError):
    """Raised when a projection run ends with fatal diagnostics."""

    def __init__(self, message: str, *, diagnostics: list["Diagnostic"]) -> None:
        super().__init__(message)
        self.diagnostics = diagnostics
