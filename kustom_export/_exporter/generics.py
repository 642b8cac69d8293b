"""Resolve a generic declaration against concrete type arguments."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import TypeVar

from kustom_export._exporter.descriptors import (
    ClassDescriptor,
    Descriptor,
    FunctionDescriptor,
    InterfaceDescriptor,
    ParameterDescriptor,
    PropertyDescriptor,
    SuperDescriptor,
)
from kustom_export._exporter.errors import GenericArityError, UnsupportedDeclarationError
from kustom_export._exporter.types import TypeShape

GenericBinding = Mapping[str, TypeShape]

_Generic = TypeVar("_Generic", ClassDescriptor, InterfaceDescriptor)


def bind_generics(generic_params: Sequence[str], type_args: Sequence[TypeShape]) -> GenericBinding:
    if len(generic_params) != len(type_args):
        raise GenericArityError(
            f"Expected {len(generic_params)} type argument(s) "
            f"<{', '.join(generic_params)}>, got {len(type_args)}"
        )
    return MappingProxyType(dict(zip(generic_params, type_args)))


def substitute(shape: TypeShape, binding: GenericBinding) -> TypeShape:
    """Replace type variables by their bound shapes, recursively."""
    if shape.is_type_variable and shape.name in binding:
        bound = binding[shape.name]
        # T? bound to String gives String?, a nullable binding stays nullable.
        return bound.with_nullable(bound.nullable or shape.nullable)
    if shape.type_args:
        return shape.with_type_args(tuple(substitute(a, binding) for a in shape.type_args))
    return shape


def _substitute_params(
    params: tuple[ParameterDescriptor, ...], binding: GenericBinding
) -> tuple[ParameterDescriptor, ...]:
    return tuple(dataclasses.replace(p, type=substitute(p.type, binding)) for p in params)


def _substitute_properties(
    properties: tuple[PropertyDescriptor, ...], binding: GenericBinding
) -> tuple[PropertyDescriptor, ...]:
    return tuple(dataclasses.replace(p, type=substitute(p.type, binding)) for p in properties)


def _substitute_functions(
    functions: tuple[FunctionDescriptor, ...], binding: GenericBinding
) -> tuple[FunctionDescriptor, ...]:
    return tuple(
        dataclasses.replace(
            f,
            return_type=substitute(f.return_type, binding),
            parameters=_substitute_params(f.parameters, binding),
        )
        for f in functions
    )


def _substitute_supers(
    supers: tuple[SuperDescriptor, ...], binding: GenericBinding
) -> tuple[SuperDescriptor, ...]:
    return tuple(
        dataclasses.replace(
            s,
            type=substitute(s.type, binding),
            constructor_params=(
                None
                if s.constructor_params is None
                else _substitute_params(s.constructor_params, binding)
            ),
        )
        for s in supers
    )


def resolve_generics(
    descriptor: Descriptor,
    type_args: Sequence[TypeShape],
    export_name: str | None = None,
) -> Descriptor:
    """
    Return a copy of *descriptor* where every generic parameter is replaced by
    the type argument at the same position.

    The returned descriptor has no generic parameters left, records the
    concrete ``type_args`` and is exported as *export_name*.
    """
    if not isinstance(descriptor, (ClassDescriptor, InterfaceDescriptor)):
        raise UnsupportedDeclarationError(
            f"{descriptor.simple_name} cannot be instantiated with type arguments",
            descriptor.origin,
        )
    return _resolve(descriptor, type_args, export_name)


def _resolve(
    descriptor: _Generic, type_args: Sequence[TypeShape], export_name: str | None
) -> _Generic:
    try:
        binding = bind_generics(descriptor.generic_params, type_args)
    except GenericArityError as e:
        raise e.at(descriptor.origin)
    changes = dict(
        generic_params=(),
        type_args=tuple(type_args),
        export_name=export_name,
        supers=_substitute_supers(descriptor.supers, binding),
        properties=_substitute_properties(descriptor.properties, binding),
        functions=_substitute_functions(descriptor.functions, binding),
    )
    if isinstance(descriptor, ClassDescriptor):
        changes["constructor_params"] = _substitute_params(descriptor.constructor_params, binding)
    return dataclasses.replace(descriptor, **changes)
