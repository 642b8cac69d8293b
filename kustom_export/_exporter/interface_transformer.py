"""Facade generation for an interface."""

from __future__ import annotations

from kustom_export._exporter.class_transformer import delegate_name, wrapped_names
from kustom_export._exporter.context import ExportContext
from kustom_export._exporter.descriptors import InterfaceDescriptor
from kustom_export._exporter.errors import UnresolvedGenericsError
from kustom_export._exporter.kotlin_ast import (
    ConstructorSpec,
    FileSpec,
    ParameterSpec,
    TypeSpec,
)
from kustom_export._exporter.members import (
    abstract_function,
    abstract_property,
    common_alias,
    export_function,
    exported_shape,
    import_function,
    wrap_function,
    wrap_property,
)
from kustom_export._exporter.types import JS_EXPORT, TypeShape


def transform_interface(origin: InterfaceDescriptor, ctx: ExportContext) -> FileSpec:
    """
    Generate the exported interface and two private adapters:

    - ``Exported<Name>`` implements the exported interface over a native value,
    - ``Imported<Name>`` implements the native interface over an exported value
      (an implementation written on the JS side).

    Converting an adapter back unwraps it instead of stacking adapters.
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
    member_names = wrapped_names(origin)

    interface = TypeSpec(
        kind="interface",
        name=export_name,
        modifiers=["public"],
        annotations=[JS_EXPORT],
    )
    for sup in origin.supers:
        interface.superinterfaces.append(exported_shape(ctx, sup.type, sup.type.name))
    for prop in origin.properties:
        modifiers = ["override"] if prop.is_override and origin.supers else ["public"]
        interface.properties.append(abstract_property(prop, ctx, modifiers))
    for func in origin.functions:
        modifiers = ["override"] if func.is_override and origin.supers else ["public"]
        interface.functions.append(abstract_function(func, ctx, modifiers))

    common = delegate_name("common", member_names)
    exported_adapter = TypeSpec(
        kind="class",
        name=f"Exported{export_name}",
        modifiers=["private"],
        primary_constructor=ConstructorSpec(
            parameters=[ParameterSpec(common, native, ["val"])],
        ),
        superinterfaces=[wrapper],
        properties=[wrap_property(p, common, ctx, ["override"]) for p in origin.properties],
        functions=[wrap_function(f, common, ctx, ["override"]) for f in origin.functions],
    )

    exported = delegate_name("exported", member_names)
    imported_adapter = TypeSpec(
        kind="class",
        name=f"Imported{export_name}",
        modifiers=["private"],
        primary_constructor=ConstructorSpec(
            parameters=[ParameterSpec(exported, wrapper, ["val"])],
        ),
        superinterfaces=[native],
        properties=[
            wrap_property(p, exported, ctx, ["override"], exporting=False)
            for p in origin.properties
        ],
        functions=[
            wrap_function(f, exported, ctx, ["override"], exporting=False)
            for f in origin.functions
        ],
    )

    return FileSpec(
        package=js_package,
        name=export_name,
        aliased_imports={native.qualified_name: alias},
        members=[
            interface,
            exported_adapter,
            imported_adapter,
            import_function(
                export_name,
                wrapper,
                native,
                f"(this as? {exported_adapter.name})?.{common} ?: {imported_adapter.name}(this)",
            ),
            export_function(
                export_name,
                wrapper,
                native,
                f"(this as? {imported_adapter.name})?.{exported} ?: {exported_adapter.name}(this)",
            ),
        ],
    )
