"""
Entry points of the exporter core.

Each request is handled in isolation: any failure is turned into a
diagnostic attributed to the declaration and the request yields no file,
other requests are unaffected.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable

from kustom_export._exporter.class_transformer import transform_class
from kustom_export._exporter.context import ExportContext
from kustom_export._exporter.descriptors import (
    ClassDescriptor,
    Descriptor,
    EnumDescriptor,
    InterfaceDescriptor,
    SealedClassDescriptor,
    SourceLocation,
)
from kustom_export._exporter.enum_transformer import transform_enum
from kustom_export._exporter.errors import Diagnostic, ExportError, UnsupportedDeclarationError
from kustom_export._exporter.generics import resolve_generics
from kustom_export._exporter.interface_transformer import transform_interface
from kustom_export._exporter.kotlin_ast import FileSpec
from kustom_export._exporter.mapping import TypeMappingTable
from kustom_export._exporter.sealed_transformer import transform_sealed_class
from kustom_export._exporter.types import TypeShape

log = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ExportRequest:
    descriptor: Descriptor
    sources: tuple[SourceLocation, ...] = ()

    @property
    def display_name(self) -> str:
        return f"{self.descriptor.package}.{self.descriptor.simple_name}".lstrip(".")


@dataclasses.dataclass(frozen=True)
class GenericsExportRequest:
    """Export ``descriptor<type_args>`` under the wrapper name ``name``."""

    name: str
    descriptor: Descriptor
    type_args: tuple[TypeShape, ...]
    sources: tuple[SourceLocation, ...] = ()

    @property
    def display_name(self) -> str:
        args = ", ".join(str(a) for a in self.type_args)
        return f"{self.name} ({self.descriptor.simple_name}<{args}>)"


Request = ExportRequest | GenericsExportRequest


@dataclasses.dataclass(frozen=True)
class ExportResult:
    file: FileSpec | None
    diagnostics: tuple[Diagnostic, ...] = ()
    sources: tuple[SourceLocation, ...] = ()

    @property
    def ok(self) -> bool:
        return self.file is not None


def transform(descriptor: Descriptor, ctx: ExportContext) -> FileSpec:
    match descriptor:
        case ClassDescriptor():
            return transform_class(descriptor, ctx)
        case SealedClassDescriptor():
            return transform_sealed_class(descriptor, ctx)
        case InterfaceDescriptor():
            return transform_interface(descriptor, ctx)
        case EnumDescriptor():
            return transform_enum(descriptor, ctx)
        case _:
            raise UnsupportedDeclarationError(
                f"Cannot export a {type(descriptor).__name__}",
                getattr(descriptor, "origin", None),
            )


def _sources(descriptor: Descriptor, extra: Iterable[SourceLocation]) -> tuple[SourceLocation, ...]:
    sources = [descriptor.origin] if descriptor.origin is not None else []
    for s in extra:
        if s not in sources:
            sources.append(s)
    return tuple(sources)


def _guarded(
    display_name: str,
    descriptor: Descriptor,
    sources: tuple[SourceLocation, ...],
    build: Callable[[], FileSpec],
) -> ExportResult:
    try:
        file = build()
    except ExportError as e:
        diagnostic = Diagnostic.from_error(e.at(descriptor.origin))
    except Exception as e:
        log.debug(f"Unexpected failure while exporting {display_name}", exc_info=True)
        diagnostic = Diagnostic("error", f"Internal error: {e!r}", descriptor.origin)
    else:
        log.debug(f"Exported {display_name}")
        return ExportResult(file, (), sources)
    log.warning(f"Skipping {display_name}: {diagnostic}")
    return ExportResult(None, (diagnostic,), sources)


def export_declaration(request: ExportRequest, ctx: ExportContext) -> ExportResult:
    """Export a declaration annotated for export."""
    return _guarded(
        request.display_name,
        request.descriptor,
        _sources(request.descriptor, request.sources),
        lambda: transform(request.descriptor, ctx),
    )


def export_generics(request: GenericsExportRequest, ctx: ExportContext) -> ExportResult:
    """Export one instantiation of a generic declaration."""
    return _guarded(
        request.display_name,
        request.descriptor,
        _sources(request.descriptor, request.sources),
        lambda: transform(
            resolve_generics(request.descriptor, request.type_args, request.name), ctx
        ),
    )


def export_request(request: Request, ctx: ExportContext) -> ExportResult:
    if isinstance(request, GenericsExportRequest):
        return export_generics(request, ctx)
    return export_declaration(request, ctx)


def exported_types(requests: Iterable[Request]) -> list[tuple[TypeShape, str]]:
    """``(native shape, export name)`` of every declaration the requests export."""
    exported: dict[TypeShape, str] = {}
    for request in requests:
        d = request.descriptor
        if isinstance(request, GenericsExportRequest):
            native = TypeShape(d.simple_name, d.package, tuple(request.type_args))
            exported.setdefault(native, request.name)
        elif not getattr(d, "generic_params", ()):
            exported.setdefault(d.native_shape, d.exported_name)
    return list(exported.items())


def sealed_base_types(requests: Iterable[Request]) -> list[TypeShape]:
    """Native shapes of the sealed classes the requests export."""
    return [
        r.descriptor.native_shape
        for r in requests
        if isinstance(r, ExportRequest) and isinstance(r.descriptor, SealedClassDescriptor)
    ]


def session_context(
    table: TypeMappingTable,
    exported: Iterable[tuple[TypeShape, str]],
    sealed: Iterable[TypeShape] = (),
    erase_package: bool = False,
) -> ExportContext:
    return ExportContext(
        table,
        erase_package,
        sealed_bases=frozenset(s.raw_key for s in sealed),
        exported_names=frozenset((s.package, name) for s, name in exported),
    )
