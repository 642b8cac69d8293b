"""Facade generation for an enum class."""

from __future__ import annotations

from kustom_export._exporter.context import ExportContext
from kustom_export._exporter.descriptors import EnumDescriptor
from kustom_export._exporter.errors import UnsupportedDeclarationError
from kustom_export._exporter.kotlin_ast import (
    ConstructorSpec,
    FileSpec,
    FunSpec,
    ParameterSpec,
    PropertySpec,
    TypeSpec,
)
from kustom_export._exporter.members import common_alias, export_function, import_function
from kustom_export._exporter.naming import kotlin_safe
from kustom_export._exporter.types import JS_EXPORT, STRING, TypeShape, array_of


def entries_holder_name(simple_name: str) -> str:
    return f"{simple_name}s"


def transform_enum(origin: EnumDescriptor, ctx: ExportContext) -> FileSpec:
    duplicates = sorted({e for e in origin.entries if origin.entries.count(e) > 1})
    if duplicates:
        raise UnsupportedDeclarationError(
            f"{origin.simple_name} declares duplicated entries {duplicates}", origin.origin
        )

    js_package = ctx.facade_package(origin.package)
    name = origin.exported_name
    alias = common_alias(origin.simple_name)
    native = origin.native_shape
    wrapper = TypeShape(name, js_package)
    delegate = "value"
    holder = entries_holder_name(name)
    if ctx.declares(origin.package, holder):
        raise UnsupportedDeclarationError(
            f"The entries of {name} are exported as `{holder}`, which clashes with "
            f"the exported declaration {holder} of the same package",
            origin.origin,
        )

    enum_class = TypeSpec(
        kind="class",
        name=name,
        modifiers=["public"],
        annotations=[JS_EXPORT],
        primary_constructor=ConstructorSpec(
            parameters=[ParameterSpec(delegate, native, ["internal", "val"])],
            modifiers=["internal"],
        ),
        properties=[
            PropertySpec(
                name="name",
                type=STRING,
                modifiers=["public"],
                initializer=f"{delegate}.name",
            )
        ],
    )

    # One accessor per entry, in declaration order.
    accessors = [kotlin_safe(entry) for entry in origin.entries]
    entries_object = TypeSpec(
        kind="object",
        name=holder,
        modifiers=["public"],
        annotations=[JS_EXPORT],
        properties=[
            PropertySpec(
                name=accessor,
                type=wrapper,
                modifiers=["public"],
                initializer=f"{alias}.{accessor}.export{name}()",
            )
            for accessor in accessors
        ],
    )

    values = FunSpec(
        name=f"{name}_values",
        return_type=array_of(wrapper),
        modifiers=["public"],
        annotations=[JS_EXPORT],
        expression_body=f"arrayOf({', '.join(f'{holder}.{a}' for a in accessors)})",
    )

    value_of = FunSpec(
        name=f"{name}_valueOf",
        parameters=[ParameterSpec("name", STRING)],
        return_type=wrapper.with_nullable(True),
        modifiers=["public"],
        annotations=[JS_EXPORT],
        body=[f"if (name == {holder}.{a}.name) return {holder}.{a}" for a in accessors]
        + ["return null"],
    )

    return FileSpec(
        package=js_package,
        name=name,
        aliased_imports={native.qualified_name: alias},
        members=[
            enum_class,
            import_function(name, wrapper, native, delegate),
            export_function(name, wrapper, native, f"{name}(this)"),
            entries_object,
            values,
            value_of,
        ],
    )
