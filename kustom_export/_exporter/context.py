"""Session-wide configuration handed to every transformer."""

from __future__ import annotations

import dataclasses

from kustom_export._exporter.mapping import TypeMappingTable
from kustom_export._exporter.naming import facade_package
from kustom_export._exporter.types import TypeShape


@dataclasses.dataclass(frozen=True)
class ExportContext:
    mapping: TypeMappingTable
    erase_package: bool = False
    # Raw keys of the sealed classes exported in the session, their wrappers are abstract.
    sealed_bases: frozenset[tuple[str, str]] = frozenset()
    # (native package, export name) of every declaration exported in the session.
    exported_names: frozenset[tuple[str, str]] = frozenset()

    def __post_init__(self) -> None:
        if not self.mapping.frozen:
            raise ValueError("ExportContext needs a frozen type mapping table")

    def facade_package(self, package: str) -> str:
        return facade_package(package, self.erase_package)

    def is_sealed_base(self, shape: TypeShape) -> bool:
        return shape.raw_key in self.sealed_bases

    def declares(self, package: str, name: str) -> bool:
        """True when an exported declaration is generated as ``name`` in the facade package of *package*."""
        target = self.facade_package(package)
        return any(
            n == name and self.facade_package(p) == target for p, n in self.exported_names
        )
