"""Facade generation for a regular class."""

from __future__ import annotations

import logging

from kustom_export._exporter.context import ExportContext
from kustom_export._exporter.descriptors import (
    ClassDescriptor,
    InterfaceDescriptor,
    SuperDescriptor,
)
from kustom_export._exporter.errors import UnresolvedGenericsError, UnsupportedDeclarationError
from kustom_export._exporter.kotlin_ast import (
    ConstructorSpec,
    FileSpec,
    ParameterSpec,
    TypeSpec,
)
from kustom_export._exporter.members import (
    common_alias,
    export_function,
    exported_shape,
    import_function,
    native_type_text,
    wrap_function,
    wrap_property,
)
from kustom_export._exporter.naming import kotlin_safe
from kustom_export._exporter.types import JS_EXPORT, TypeShape

log = logging.getLogger(__name__)


def delegate_name(preferred: str, member_names: set[str]) -> str:
    """Name of the property holding the wrapped value, avoiding wrapped member names."""
    name = preferred
    while name in member_names:
        name += "_"
    return name


def wrapped_names(origin: ClassDescriptor | InterfaceDescriptor) -> set[str]:
    """Names a delegate property must not shadow: members and function parameters."""
    names = {p.name for p in origin.properties} | {f.name for f in origin.functions}
    names.update(p.name for f in origin.functions for p in f.parameters)
    return names


def transform_class(origin: ClassDescriptor, ctx: ExportContext) -> FileSpec:
    """
    Only the wrappers of sealed classes are abstract, so a class supertype
    must be a sealed class exported in the same session. The subclass wrapper
    extends it through its empty constructor and implements its abstract
    members with the inherited ones.
    """
    if origin.generic_params:
        raise UnresolvedGenericsError(
            f"{origin.simple_name}<{', '.join(origin.generic_params)}> cannot be exported with "
            "open generic parameters, request a generics instantiation instead",
            origin.origin,
        )

    js_package = ctx.facade_package(origin.package)
    export_name = origin.exported_name
    alias = common_alias(origin.simple_name)
    native = origin.native_shape
    wrapper = TypeShape(export_name, js_package)
    delegate = delegate_name("common", wrapped_names(origin))

    type_spec = TypeSpec(
        kind="class",
        name=export_name,
        modifiers=["public"],
        annotations=[JS_EXPORT],
        primary_constructor=ConstructorSpec(
            parameters=[ParameterSpec(delegate, native, ["internal", "val"])],
            modifiers=["internal"],
        ),
    )

    # ---- Super types ----
    degraded_supers: list[SuperDescriptor] = []
    for sup in origin.supers:
        super_shape = exported_shape(ctx, sup.type, sup.type.name)
        if not sup.is_class:
            type_spec.superinterfaces.append(super_shape)
            continue
        if not ctx.is_sealed_base(sup.type):
            raise UnsupportedDeclarationError(
                f"{origin.simple_name} extends {sup.type.qualified_name}, only sealed classes "
                "exported in the same session can be extended by an exported class",
                origin.origin,
            )
        type_spec.superclass = super_shape
        if not sup.is_reconstructable:
            # The super constructor arguments only exist at runtime (`Foo : Bar(33)`).
            degraded_supers.append(sup)

    # ---- Constructor ----
    if degraded_supers:
        names = ", ".join(s.type.name for s in degraded_supers)
        log.debug(
            f"{origin.simple_name}: constructor arguments of {names} are not known statically, "
            "the wrapper exposes no constructor"
        )
        type_spec.kdoc = [
            f"The constructor arguments given to {names} are only known at runtime, so this",
            f"wrapper cannot be constructed from JS: use `export{export_name}()` on a native",
            "value. Inherited members implement the abstract members of the super wrapper.",
        ]
    else:
        params = [
            ParameterSpec(kotlin_safe(p.name), exported_shape(ctx, p.type, p.name))
            for p in origin.constructor_params
        ]
        args = ", ".join(
            f"{kotlin_safe(p.name)} = {ctx.mapping.import_expr(kotlin_safe(p.name), p.type)}"
            for p in origin.constructor_params
        )
        type_spec.constructors.append(
            ConstructorSpec(
                parameters=params,
                modifiers=["public"],
                delegate=f"this({native_type_text(origin.simple_name, origin.type_args)}({args}))",
            )
        )

    # ---- Members ----
    has_supers = bool(origin.supers)
    for prop in origin.properties:
        modifiers = ["override"] if prop.is_override and has_supers else ["public"]
        type_spec.properties.append(wrap_property(prop, delegate, ctx, modifiers))
    for func in origin.functions:
        modifiers = ["override"] if func.is_override and has_supers else ["public"]
        type_spec.functions.append(wrap_function(func, delegate, ctx, modifiers))

    return FileSpec(
        package=js_package,
        name=export_name,
        aliased_imports={native.qualified_name: alias},
        members=[
            type_spec,
            import_function(export_name, wrapper, native, f"this.{delegate}"),
            export_function(export_name, wrapper, native, f"{export_name}(this)"),
        ],
    )
