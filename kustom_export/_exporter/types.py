"""Type shapes and the well-known Kotlin types the exporter knows about."""

from __future__ import annotations

import dataclasses
import re


@dataclasses.dataclass(frozen=True)
class TypeShape:
    name: str
    package: str = ""
    type_args: tuple["TypeShape", ...] = ()
    nullable: bool = False

    @property
    def qualified_name(self) -> str:
        if not self.package:
            return self.name
        return f"{self.package}.{self.name}"

    @property
    def raw_key(self) -> tuple[str, str]:
        """Structural key ignoring type arguments and nullability."""
        return (self.package, self.name)

    @property
    def is_type_variable(self) -> bool:
        return not self.package and not self.type_args

    def with_nullable(self, nullable: bool) -> TypeShape:
        if nullable == self.nullable:
            return self
        return dataclasses.replace(self, nullable=nullable)

    def with_type_args(self, type_args: tuple[TypeShape, ...]) -> TypeShape:
        return dataclasses.replace(self, type_args=tuple(type_args))

    def first_type_arg(self) -> TypeShape:
        if not self.type_args:
            raise ValueError(f"{self.qualified_name} has no type arguments")
        return self.type_args[0]

    def __str__(self) -> str:
        s = self.qualified_name
        if self.type_args:
            s += "<" + ", ".join(str(a) for a in self.type_args) + ">"
        if self.nullable:
            s += "?"
        return s


def kotlin(name: str, *type_args: TypeShape) -> TypeShape:
    return TypeShape(name, "kotlin", tuple(type_args))


# ---------------------------------------------------------------------------
# Kotlin primitive and builtin shapes
# ---------------------------------------------------------------------------

BOOLEAN = kotlin("Boolean")
BYTE = kotlin("Byte")
CHAR = kotlin("Char")
SHORT = kotlin("Short")
INT = kotlin("Int")
LONG = kotlin("Long")
FLOAT = kotlin("Float")
DOUBLE = kotlin("Double")
STRING = kotlin("String")
ANY = kotlin("Any")
UNIT = kotlin("Unit")

BOOLEAN_ARRAY = kotlin("BooleanArray")
BYTE_ARRAY = kotlin("ByteArray")
CHAR_ARRAY = kotlin("CharArray")
SHORT_ARRAY = kotlin("ShortArray")
INT_ARRAY = kotlin("IntArray")
LONG_ARRAY = kotlin("LongArray")
FLOAT_ARRAY = kotlin("FloatArray")
DOUBLE_ARRAY = kotlin("DoubleArray")

ARRAY = kotlin("Array")
LIST = TypeShape("List", "kotlin.collections")

# Target-side error type every exception is surfaced as.
ERROR = kotlin("Error")

JS_EXPORT = TypeShape("JsExport", "kotlin.js")

ALL_KOTLIN_EXCEPTIONS: list[TypeShape] = [
    kotlin(name)
    for name in (
        "Throwable",
        "Exception",
        "RuntimeException",
        "IllegalArgumentException",
        "IllegalStateException",
        "IndexOutOfBoundsException",
        "ConcurrentModificationException",
        "UnsupportedOperationException",
        "NumberFormatException",
        "NullPointerException",
        "ClassCastException",
        "AssertionError",
        "NoSuchElementException",
        "ArithmeticException",
        "NoWhenBranchMatchedException",
        "UninitializedPropertyAccessException",
    )
]

# Packages whose members Kotlin imports implicitly.
DEFAULT_IMPORTED_PACKAGES = frozenset(
    {"kotlin", "kotlin.collections", "kotlin.js", "kotlin.ranges", "kotlin.sequences"}
)

_FUNCTION_NAME_RE = re.compile(r"^Function(\d+)$")


def function_type(params: list[TypeShape], return_type: TypeShape, nullable: bool = False) -> TypeShape:
    """Build `kotlin.FunctionN<P1, ..., Pn, R>`."""
    return TypeShape(
        f"Function{len(params)}", "kotlin", tuple(params) + (return_type,), nullable
    )


def is_function_type(shape: TypeShape) -> bool:
    return (
        shape.package == "kotlin"
        and _FUNCTION_NAME_RE.match(shape.name) is not None
        and len(shape.type_args) == int(shape.name[len("Function"):]) + 1
    )


def list_of(element: TypeShape, nullable: bool = False) -> TypeShape:
    return TypeShape(LIST.name, LIST.package, (element,), nullable)


def array_of(element: TypeShape, nullable: bool = False) -> TypeShape:
    return TypeShape(ARRAY.name, ARRAY.package, (element,), nullable)
