"""Errors raised while exporting a single declaration."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kustom_export._exporter.descriptors import SourceLocation
    from kustom_export._exporter.types import TypeShape


class ExportError(Exception):
    """Base class: the declaration being exported has to be skipped."""

    def __init__(
        self,
        message: str,
        location: SourceLocation | None = None,
        member: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.location = location
        self.member = member

    def at(self, location: SourceLocation | None, member: str | None = None) -> ExportError:
        """Attach a location (and member) unless the error already carries one."""
        if self.location is None:
            self.location = location
        if self.member is None:
            self.member = member
        return self


class UnsupportedDeclarationError(ExportError):
    pass


class UnmappableTypeError(ExportError):
    def __init__(self, shape: TypeShape, reason: str = "") -> None:
        message = f"Cannot export type {shape}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.shape = shape


class GenericArityError(ExportError):
    pass


class UnresolvedGenericsError(ExportError):
    pass


@dataclasses.dataclass(frozen=True)
class Diagnostic:
    severity: str  # "error" or "warning"
    message: str
    location: SourceLocation | None = None
    member: str | None = None

    def __str__(self) -> str:
        parts = []
        if self.location is not None:
            parts.append(str(self.location))
        if self.member:
            parts.append(self.member)
        parts.append(self.message)
        return ": ".join(parts)

    @classmethod
    def from_error(cls, error: ExportError) -> Diagnostic:
        return cls("error", error.message, error.location, error.member)
