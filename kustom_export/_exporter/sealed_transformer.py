"""Facade generation for a sealed class hierarchy root."""

from __future__ import annotations

from kustom_export._exporter.context import ExportContext
from kustom_export._exporter.descriptors import SealedClassDescriptor
from kustom_export._exporter.kotlin_ast import FileSpec, TypeSpec
from kustom_export._exporter.mapping import INDENTATION
from kustom_export._exporter.members import (
    abstract_function,
    abstract_property,
    common_alias,
    export_function,
    import_function,
)
from kustom_export._exporter.naming import type_to_source
from kustom_export._exporter.types import JS_EXPORT, TypeShape


def _when(branches: list[str], fallback: str | None = None) -> str:
    lines = ["when (this) {"]
    lines += [INDENTATION + b for b in branches]
    if fallback is not None:
        lines.append(f"{INDENTATION}else -> {fallback}")
    lines.append("}")
    return "\n".join(lines)


def transform_sealed_class(origin: SealedClassDescriptor, ctx: ExportContext) -> FileSpec:
    """
    The base wrapper is abstract with an empty constructor: values passed to
    the native super constructor by each subclass are not known statically.
    Subclass wrappers are generated from their own descriptors and extend it.
    """
    js_package = ctx.facade_package(origin.package)
    name = origin.exported_name
    alias = common_alias(origin.simple_name)
    native = origin.native_shape
    wrapper = TypeShape(name, js_package)

    base = TypeSpec(
        kind="class",
        name=name,
        modifiers=["public", "abstract"],
        annotations=[JS_EXPORT],
        properties=[abstract_property(p, ctx, ["public", "abstract"]) for p in origin.properties],
        functions=[abstract_function(f, ctx, ["public", "abstract"]) for f in origin.functions],
    )

    export_branches = []
    import_branches = []
    for sub in origin.subclasses:
        sub_wrapper = TypeShape(sub.simple_name, ctx.facade_package(sub.package))
        # Dispatch on the runtime type, the static type is always the base.
        export_branches.append(f"is {type_to_source(sub.shape)} -> export{sub.simple_name}()")
        import_branches.append(f"is {type_to_source(sub_wrapper)} -> import{sub.simple_name}()")

    unknown = f'error("Unknown {name} subclass ${{this::class}}")'
    return FileSpec(
        package=js_package,
        name=name,
        aliased_imports={native.qualified_name: alias},
        members=[
            base,
            import_function(name, wrapper, native, _when(import_branches, unknown)),
            export_function(name, wrapper, native, _when(export_branches, unknown)),
        ],
    )
