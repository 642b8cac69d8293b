"""Member wrappers shared by the class, interface and sealed class transformers."""

from __future__ import annotations

from kustom_export._exporter.context import ExportContext
from kustom_export._exporter.descriptors import (
    FunctionDescriptor,
    ParameterDescriptor,
    PropertyDescriptor,
)
from kustom_export._exporter.errors import UnmappableTypeError
from kustom_export._exporter.kotlin_ast import FunSpec, ParameterSpec, PropertySpec
from kustom_export._exporter.naming import kotlin_safe, type_to_source
from kustom_export._exporter.types import UNIT, TypeShape


def common_alias(simple_name: str) -> str:
    """Alias the native declaration is imported under in its facade file."""
    return f"Common{simple_name}"


def native_type_text(simple_name: str, type_args: tuple[TypeShape, ...]) -> str:
    text = common_alias(simple_name)
    if type_args:
        text += "<" + ", ".join(type_to_source(a) for a in type_args) + ">"
    return text


def exported_shape(ctx: ExportContext, shape: TypeShape, member: str) -> TypeShape:
    try:
        return ctx.mapping.exported_shape(shape)
    except UnmappableTypeError as e:
        raise e.at(None, member)


def _visible_type(ctx: ExportContext, shape: TypeShape, member: str, exporting: bool) -> TypeShape:
    return exported_shape(ctx, shape, member) if exporting else shape


def _to_visible(ctx: ExportContext, expr: str, shape: TypeShape, exporting: bool) -> str:
    if exporting:
        return ctx.mapping.export_expr(expr, shape)
    return ctx.mapping.import_expr(expr, shape)


def _to_delegate(ctx: ExportContext, expr: str, shape: TypeShape, exporting: bool) -> str:
    if exporting:
        return ctx.mapping.import_expr(expr, shape)
    return ctx.mapping.export_expr(expr, shape)


def wrap_property(
    prop: PropertyDescriptor,
    delegate: str,
    ctx: ExportContext,
    modifiers: list[str],
    exporting: bool = True,
) -> PropertySpec:
    """
    Property forwarding to ``delegate``.

    With ``exporting`` the property has the exported shape and the delegate is
    the native value; otherwise the property has the native shape and the
    delegate is an exported value.
    """
    name = kotlin_safe(prop.name)
    target = f"{delegate}.{name}"
    try:
        setter = None
        if prop.is_mutable:
            setter = [f"{target} = {_to_delegate(ctx, 'value', prop.type, exporting)}"]
        return PropertySpec(
            name=name,
            type=_visible_type(ctx, prop.type, prop.name, exporting),
            modifiers=list(modifiers),
            mutable=prop.is_mutable,
            getter=_to_visible(ctx, target, prop.type, exporting),
            setter=setter,
        )
    except UnmappableTypeError as e:
        raise e.at(None, prop.name)


def _local_name(preferred: str, params: tuple[ParameterDescriptor, ...]) -> str:
    taken = {p.name for p in params}
    name = preferred
    while name in taken:
        name += "_"
    return name


def wrap_function(
    func: FunctionDescriptor,
    delegate: str,
    ctx: ExportContext,
    modifiers: list[str],
    exporting: bool = True,
) -> FunSpec:
    """Function converting its arguments, calling through ``delegate`` and converting the result."""
    try:
        params = [
            ParameterSpec(kotlin_safe(p.name), _visible_type(ctx, p.type, func.name, exporting))
            for p in func.parameters
        ]
        args = ", ".join(
            f"{kotlin_safe(p.name)} = {_to_delegate(ctx, kotlin_safe(p.name), p.type, exporting)}"
            for p in func.parameters
        )
        call = f"{delegate}.{kotlin_safe(func.name)}({args})"

        if func.return_type.raw_key == UNIT.raw_key:
            return FunSpec(
                name=kotlin_safe(func.name),
                parameters=params,
                modifiers=list(modifiers),
                body=[call],
            )

        result = _local_name("result", func.parameters)
        converted = _to_visible(ctx, result, func.return_type, exporting)
        body = [f"return {call}"] if converted == result else [
            f"val {result} = {call}",
            f"return {converted}",
        ]
        return FunSpec(
            name=kotlin_safe(func.name),
            parameters=params,
            return_type=_visible_type(ctx, func.return_type, func.name, exporting),
            modifiers=list(modifiers),
            body=body,
        )
    except UnmappableTypeError as e:
        raise e.at(None, func.name)


def abstract_property(prop: PropertyDescriptor, ctx: ExportContext, modifiers: list[str]) -> PropertySpec:
    return PropertySpec(
        name=kotlin_safe(prop.name),
        type=exported_shape(ctx, prop.type, prop.name),
        modifiers=list(modifiers),
        mutable=prop.is_mutable,
    )


def abstract_function(func: FunctionDescriptor, ctx: ExportContext, modifiers: list[str]) -> FunSpec:
    params = [
        ParameterSpec(kotlin_safe(p.name), exported_shape(ctx, p.type, func.name))
        for p in func.parameters
    ]
    return_type = None
    if func.return_type.raw_key != UNIT.raw_key:
        return_type = exported_shape(ctx, func.return_type, func.name)
    return FunSpec(
        name=kotlin_safe(func.name),
        parameters=params,
        return_type=return_type,
        modifiers=list(modifiers),
    )


def import_function(
    export_name: str, wrapper: TypeShape, native: TypeShape, expression: str
) -> FunSpec:
    """``public fun <Wrapper>.import<Name>(): <Native> = <expression>``"""
    return FunSpec(
        name=f"import{export_name}",
        receiver=wrapper,
        return_type=native,
        modifiers=["public"],
        expression_body=expression,
    )


def export_function(
    export_name: str, wrapper: TypeShape, native: TypeShape, expression: str
) -> FunSpec:
    """``public fun <Native>.export<Name>(): <Wrapper> = <expression>``"""
    return FunSpec(
        name=f"export{export_name}",
        receiver=native,
        return_type=wrapper,
        modifiers=["public"],
        expression_body=expression,
    )

