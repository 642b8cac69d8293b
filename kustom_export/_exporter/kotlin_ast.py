"""Abstract syntax tree of a generated Kotlin facade file."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Union

from kustom_export._exporter.types import TypeShape


@dataclass
class ParameterSpec:
    """Function or constructor parameter.

    ``modifiers`` is used by primary constructors declaring a property,
    e.g. ``["internal", "val"]``.
    """
    name: str
    type: TypeShape
    modifiers: list[str] = field(default_factory=list)


@dataclass
class PropertySpec:
    name: str
    type: TypeShape
    modifiers: list[str] = field(default_factory=list)
    mutable: bool = False
    initializer: str | None = None
    getter: str | None = None  # expression
    setter: list[str] | None = None  # statements, the new value is `value`
    annotations: list[TypeShape] = field(default_factory=list)


@dataclass
class FunSpec:
    name: str
    parameters: list[ParameterSpec] = field(default_factory=list)
    return_type: TypeShape | None = None
    modifiers: list[str] = field(default_factory=list)
    receiver: TypeShape | None = None
    body: list[str] | None = None
    expression_body: str | None = None
    annotations: list[TypeShape] = field(default_factory=list)

    @property
    def is_abstract(self) -> bool:
        return self.body is None and self.expression_body is None


@dataclass
class ConstructorSpec:
    parameters: list[ParameterSpec] = field(default_factory=list)
    modifiers: list[str] = field(default_factory=list)
    delegate: str | None = None  # e.g. "this(CommonFoo(x = x))"


@dataclass
class TypeSpec:
    kind: str  # "class", "interface" or "object"
    name: str
    modifiers: list[str] = field(default_factory=list)
    annotations: list[TypeShape] = field(default_factory=list)
    primary_constructor: ConstructorSpec | None = None
    superclass: TypeShape | None = None
    superinterfaces: list[TypeShape] = field(default_factory=list)
    properties: list[PropertySpec] = field(default_factory=list)
    constructors: list[ConstructorSpec] = field(default_factory=list)
    functions: list[FunSpec] = field(default_factory=list)
    kdoc: list[str] = field(default_factory=list)

    def property(self, name: str) -> PropertySpec:
        for p in self.properties:
            if p.name == name:
                return p
        raise KeyError(name)

    def function(self, name: str) -> FunSpec:
        for f in self.functions:
            if f.name == name:
                return f
        raise KeyError(name)


Member = Union[TypeSpec, FunSpec, PropertySpec]


@dataclass
class FileSpec:
    package: str
    name: str
    # qualified name -> alias, e.g. {"foo.bar.Season": "CommonSeason"}
    aliased_imports: dict[str, str] = field(default_factory=dict)
    members: list[Member] = field(default_factory=list)

    def types(self) -> list[TypeSpec]:
        return [m for m in self.members if isinstance(m, TypeSpec)]

    def type(self, name: str) -> TypeSpec:
        for t in self.types():
            if t.name == name:
                return t
        raise KeyError(name)

    def functions(self) -> list[FunSpec]:
        return [m for m in self.members if isinstance(m, FunSpec)]

    def function(self, name: str) -> FunSpec:
        for f in self.functions():
            if f.name == name:
                return f
        raise KeyError(name)


def referenced_shapes(file: FileSpec) -> Iterator[TypeShape]:
    """Every type shape the file declares a reference to, nested arguments included."""

    def walk(shape: TypeShape | None) -> Iterator[TypeShape]:
        if shape is None:
            return
        yield shape
        for arg in shape.type_args:
            yield from walk(arg)

    def walk_params(params: list[ParameterSpec]) -> Iterator[TypeShape]:
        for p in params:
            yield from walk(p.type)

    def walk_property(p: PropertySpec) -> Iterator[TypeShape]:
        yield from walk(p.type)
        for a in p.annotations:
            yield from walk(a)

    def walk_function(f: FunSpec) -> Iterator[TypeShape]:
        yield from walk(f.receiver)
        yield from walk_params(f.parameters)
        yield from walk(f.return_type)
        for a in f.annotations:
            yield from walk(a)

    def walk_type(t: TypeSpec) -> Iterator[TypeShape]:
        for a in t.annotations:
            yield from walk(a)
        if t.primary_constructor is not None:
            yield from walk_params(t.primary_constructor.parameters)
        yield from walk(t.superclass)
        for s in t.superinterfaces:
            yield from walk(s)
        for p in t.properties:
            yield from walk_property(p)
        for c in t.constructors:
            yield from walk_params(c.parameters)
        for f in t.functions:
            yield from walk_function(f)

    for member in file.members:
        if isinstance(member, TypeSpec):
            yield from walk_type(member)
        elif isinstance(member, FunSpec):
            yield from walk_function(member)
        else:
            yield from walk_property(member)
