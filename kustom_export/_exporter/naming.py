"""Kotlin name-mangling helpers and textual type output used inside code snippets."""

from __future__ import annotations

from kustom_export._exporter.types import DEFAULT_IMPORTED_PACKAGES, TypeShape, is_function_type

# Hard keywords cannot be used as identifiers without backticks.
KOTLIN_HARD_KEYWORDS = frozenset(
    {
        "as", "break", "class", "continue", "do", "else", "false", "for", "fun",
        "if", "in", "interface", "is", "null", "object", "package", "return",
        "super", "this", "throw", "true", "try", "typealias", "typeof", "val",
        "var", "when", "while",
    }
)


def kotlin_safe(name: str) -> str:
    """
    Given an identifier coming from the native declaration, return an
    identifier that can be written in Kotlin source as-is.
    """
    if name in KOTLIN_HARD_KEYWORDS or not name.isidentifier():
        return f"`{name}`"
    return name


def short_name_for_index(index: int) -> str:
    """
    Deterministic lambda parameter name for a positional index.

    >>> [short_name_for_index(i) for i in (0, 25, 26, 27, 701, 702)]
    ['a', 'z', 'aa', 'ab', 'zz', 'aaa']
    """
    if index < 0:
        raise ValueError(f"negative parameter index {index}")
    letter = chr(ord("a") + index % 26)
    if index >= 26:
        return short_name_for_index(index // 26 - 1) + letter
    return letter


def facade_package(package: str, erase_package: bool) -> str:
    """Package generated wrappers for declarations of *package* are written to."""
    if erase_package:
        return ""
    if not package:
        return "js"
    return f"{package}.js"


def qdot(shape: TypeShape) -> str:
    """Member access operator for a value of *shape*."""
    return "?." if shape.nullable else "."


def type_to_source(shape: TypeShape) -> str:
    """
    Textual Kotlin type for use inside generated expressions.

    Types from default-imported packages are written by simple name, anything
    else fully qualified so the snippet does not depend on file imports.
    """
    if is_function_type(shape):
        *params, ret = shape.type_args
        text = f"({', '.join(type_to_source(p) for p in params)}) -> {type_to_source(ret)}"
        return f"({text})?" if shape.nullable else text
    if shape.package in DEFAULT_IMPORTED_PACKAGES or not shape.package:
        text = shape.name
    else:
        text = shape.qualified_name
    if shape.type_args:
        text += "<" + ", ".join(type_to_source(a) for a in shape.type_args) + ">"
    if shape.nullable:
        text += "?"
    return text
