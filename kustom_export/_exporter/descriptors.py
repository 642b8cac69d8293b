"""Language-agnostic description of the declarations to export."""

from __future__ import annotations

import dataclasses
from typing import Union

from kustom_export._exporter.types import TypeShape


@dataclasses.dataclass(frozen=True)
class SourceLocation:
    path: str
    line: int | None = None

    def __str__(self) -> str:
        if self.line is None:
            return self.path
        return f"{self.path}:{self.line}"


@dataclasses.dataclass(frozen=True)
class ParameterDescriptor:
    name: str
    type: TypeShape


@dataclasses.dataclass(frozen=True)
class PropertyDescriptor:
    name: str
    type: TypeShape
    is_mutable: bool = False
    is_override: bool = False


@dataclasses.dataclass(frozen=True)
class FunctionDescriptor:
    name: str
    return_type: TypeShape
    parameters: tuple[ParameterDescriptor, ...] = ()
    is_override: bool = False


@dataclasses.dataclass(frozen=True)
class SuperDescriptor:
    """
    A direct supertype.

    For class supertypes (``is_class``), ``constructor_params`` lists the
    arguments handed to the super constructor, or is None when they are only
    known at runtime (``class Foo : Bar(33)``).
    """

    type: TypeShape
    is_class: bool = False
    constructor_params: tuple[ParameterDescriptor, ...] | None = None

    @property
    def is_reconstructable(self) -> bool:
        return not self.is_class or self.constructor_params is not None


@dataclasses.dataclass(frozen=True)
class SealedSubClassDescriptor:
    package: str
    simple_name: str

    @property
    def shape(self) -> TypeShape:
        return TypeShape(self.simple_name, self.package)


@dataclasses.dataclass(frozen=True)
class ClassDescriptor:
    package: str
    simple_name: str
    generic_params: tuple[str, ...] = ()
    supers: tuple[SuperDescriptor, ...] = ()
    constructor_params: tuple[ParameterDescriptor, ...] = ()
    properties: tuple[PropertyDescriptor, ...] = ()
    functions: tuple[FunctionDescriptor, ...] = ()
    type_args: tuple[TypeShape, ...] = ()
    export_name: str | None = None
    origin: SourceLocation | None = None

    @property
    def native_shape(self) -> TypeShape:
        return TypeShape(self.simple_name, self.package, self.type_args)

    @property
    def exported_name(self) -> str:
        return self.export_name or self.simple_name


@dataclasses.dataclass(frozen=True)
class SealedClassDescriptor:
    package: str
    simple_name: str
    constructor_params: tuple[ParameterDescriptor, ...] = ()
    properties: tuple[PropertyDescriptor, ...] = ()
    functions: tuple[FunctionDescriptor, ...] = ()
    subclasses: tuple[SealedSubClassDescriptor, ...] = ()
    origin: SourceLocation | None = None

    @property
    def native_shape(self) -> TypeShape:
        return TypeShape(self.simple_name, self.package)

    @property
    def exported_name(self) -> str:
        return self.simple_name


@dataclasses.dataclass(frozen=True)
class InterfaceDescriptor:
    package: str
    simple_name: str
    generic_params: tuple[str, ...] = ()
    supers: tuple[SuperDescriptor, ...] = ()
    properties: tuple[PropertyDescriptor, ...] = ()
    functions: tuple[FunctionDescriptor, ...] = ()
    type_args: tuple[TypeShape, ...] = ()
    export_name: str | None = None
    origin: SourceLocation | None = None

    @property
    def native_shape(self) -> TypeShape:
        return TypeShape(self.simple_name, self.package, self.type_args)

    @property
    def exported_name(self) -> str:
        return self.export_name or self.simple_name


@dataclasses.dataclass(frozen=True)
class EnumDescriptor:
    package: str
    simple_name: str
    entries: tuple[str, ...] = ()
    origin: SourceLocation | None = None

    @property
    def native_shape(self) -> TypeShape:
        return TypeShape(self.simple_name, self.package)

    @property
    def exported_name(self) -> str:
        return self.simple_name


Descriptor = Union[ClassDescriptor, SealedClassDescriptor, InterfaceDescriptor, EnumDescriptor]
