"""
Type mapping table: how a native Kotlin type is exposed to JS and how values
are converted in both directions.

Rules are looked up exact-first (by package and simple name, ignoring type
arguments and nullability), then through the predicate rules in registration
order. The first matching rule wins.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Callable, Iterable

from kustom_export._exporter.errors import UnmappableTypeError
from kustom_export._exporter.naming import (
    facade_package,
    qdot,
    short_name_for_index,
    type_to_source,
)
from kustom_export._exporter.types import (
    ALL_KOTLIN_EXCEPTIONS,
    ANY,
    ARRAY,
    BOOLEAN,
    BOOLEAN_ARRAY,
    BYTE,
    BYTE_ARRAY,
    CHAR,
    CHAR_ARRAY,
    DOUBLE,
    DOUBLE_ARRAY,
    ERROR,
    FLOAT,
    FLOAT_ARRAY,
    INT,
    INT_ARRAY,
    LIST,
    LONG,
    LONG_ARRAY,
    SHORT,
    SHORT_ARRAY,
    STRING,
    UNIT,
    TypeShape,
    array_of,
    is_function_type,
)

log = logging.getLogger(__name__)

INDENTATION = "    "

ShapeFn = Callable[[TypeShape], TypeShape]
ExprFn = Callable[[str, TypeShape], str]


@dataclasses.dataclass(frozen=True)
class MappingRule:
    """
    Either an exact rule (``key`` set) or a predicate rule (``predicate`` set).
    """

    exported_shape: ShapeFn
    import_expr: ExprFn
    export_expr: ExprFn
    key: tuple[str, str] | None = None
    predicate: Callable[[TypeShape], bool] | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if (self.key is None) == (self.predicate is None):
            raise ValueError("A mapping rule needs exactly one of 'key' or 'predicate'")


def _identity_expr(expr: str, shape: TypeShape) -> str:
    return expr


def _identity_shape(shape: TypeShape) -> TypeShape:
    return shape


class TypeMappingTable:
    """
    Registry of mapping rules.

    The table is populated first, then frozen; only a frozen table can be
    queried. Rule closures capture the table itself to map nested types, so
    every rule must be registered before the first lookup happens.
    """

    def __init__(self) -> None:
        self._exact: dict[tuple[str, str], MappingRule] = {}
        self._predicates: list[MappingRule] = []
        self._frozen = False

    # ---- registration -------------------------------------------------------

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("The type mapping table is frozen, rules can no longer be registered")

    def add(self, rule: MappingRule) -> None:
        self._check_mutable()
        if rule.key is not None:
            if rule.key in self._exact:
                raise ValueError(f"A mapping rule is already registered for {'.'.join(rule.key)}")
            self._exact[rule.key] = rule
        else:
            self._predicates.append(rule)

    def register(
        self,
        shape: TypeShape,
        exported_shape: ShapeFn,
        import_expr: ExprFn,
        export_expr: ExprFn,
    ) -> None:
        self.add(
            MappingRule(
                exported_shape=exported_shape,
                import_expr=import_expr,
                export_expr=export_expr,
                key=shape.raw_key,
                description=shape.qualified_name,
            )
        )

    def register_predicate(
        self,
        predicate: Callable[[TypeShape], bool],
        exported_shape: ShapeFn,
        import_expr: ExprFn,
        export_expr: ExprFn,
        description: str = "",
    ) -> None:
        self.add(
            MappingRule(
                exported_shape=exported_shape,
                import_expr=import_expr,
                export_expr=export_expr,
                predicate=predicate,
                description=description,
            )
        )

    def register_identity(self, shape: TypeShape) -> None:
        self.register(shape, _identity_shape, _identity_expr, _identity_expr)

    def freeze(self) -> TypeMappingTable:
        self._frozen = True
        log.debug(
            f"Type mapping table frozen with {len(self._exact)} exact "
            f"and {len(self._predicates)} predicate rules"
        )
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ---- lookup -------------------------------------------------------------

    def find_rule(self, shape: TypeShape) -> MappingRule | None:
        if not self._frozen:
            raise RuntimeError("The type mapping table must be frozen before it is queried")
        rule = self._exact.get(shape.raw_key)
        if rule is not None:
            return rule
        for rule in self._predicates:
            if rule.predicate(shape):
                return rule
        return None

    def exported_shape(self, shape: TypeShape) -> TypeShape:
        rule = self.find_rule(shape)
        if rule is not None:
            return rule.exported_shape(shape).with_nullable(shape.nullable)
        if not shape.type_args:
            return shape
        exported_args = tuple(self.exported_shape(a) for a in shape.type_args)
        if exported_args != shape.type_args:
            raise UnmappableTypeError(
                shape, "no mapping is registered and its type arguments need a conversion"
            )
        return shape

    def is_identity(self, shape: TypeShape) -> bool:
        return self.exported_shape(shape) == shape

    def import_expr(self, expr: str, shape: TypeShape) -> str:
        """Expression converting *expr* (exported representation) to the native *shape*."""
        rule = self.find_rule(shape)
        if rule is not None:
            return rule.import_expr(expr, shape)
        self.exported_shape(shape)  # raises when not identity-safe
        return expr

    def export_expr(self, expr: str, shape: TypeShape) -> str:
        """Expression converting *expr* (native *shape*) to its exported representation."""
        rule = self.find_rule(shape)
        if rule is not None:
            return rule.export_expr(expr, shape)
        self.exported_shape(shape)
        return expr


# ---------------------------------------------------------------------------
# Built-in rules
# ---------------------------------------------------------------------------

IDENTITY_TYPES: list[TypeShape] = [
    BOOLEAN, BYTE, CHAR, SHORT, INT, FLOAT, DOUBLE,  # Js "number"
    STRING,  # Js "string"
    BOOLEAN_ARRAY, BYTE_ARRAY,  # Js "Int8Array"
    SHORT_ARRAY,  # Js "Int16Array"
    INT_ARRAY,  # Js "Int32Array"
    FLOAT_ARRAY,  # Js "Float32Array"
    DOUBLE_ARRAY,  # Js "Float64Array"
    CHAR_ARRAY,  # Js "UInt16Array"
    ANY,  # Js "Object"
    UNIT,
]


_IDENTIFIER_RE = re.compile(r"[A-Za-z_]\w*")


def _lambda_parameter_names(count: int, target: str) -> list[str]:
    """
    Positional names for the parameters of a lambda calling *target*, skipping
    any identifier *target* refers to so nested lambdas do not shadow it.
    """
    taken = set(_IDENTIFIER_RE.findall(target))
    names: list[str] = []
    index = 0
    while len(names) < count:
        name = short_name_for_index(index)
        if name not in taken:
            names.append(name)
        index += 1
    return names


def _lambda(params: list[tuple[str, str]], body: str) -> str:
    signature = ", ".join(f"{name}: {type_text}" for name, type_text in params)
    head = f"{{ {signature} ->" if signature else "{ ->"
    body = body.replace("\n", "\n" + INDENTATION)
    return f"{head}\n{INDENTATION}{body}\n}}"


def _nullable_let(expr: str, shape: TypeShape, build: Callable[[str], str]) -> str:
    if not shape.nullable:
        return build(expr)
    return f"{expr}?.let {{ fn ->\n{INDENTATION}" + build("fn").replace("\n", "\n" + INDENTATION) + "\n}"


def register_builtin_rules(
    table: TypeMappingTable, extra_exceptions: Iterable[TypeShape] = ()
) -> None:
    for shape in IDENTITY_TYPES:
        table.register_identity(shape)

    # kotlin.Long has no JS counterpart, values above 2^53 lose precision.
    table.register(
        LONG,
        exported_shape=lambda s: DOUBLE,
        import_expr=lambda e, s: f"{e}{qdot(s)}toLong()",
        export_expr=lambda e, s: f"{e}{qdot(s)}toDouble()",
    )

    table.register(
        LONG_ARRAY,
        exported_shape=lambda s: array_of(table.exported_shape(LONG)),
        import_expr=lambda e, s: (
            f"{e}{qdot(s)}map {{ {table.import_expr('it', LONG)} }}{qdot(s)}toLongArray()"
        ),
        export_expr=lambda e, s: (
            f"{e}{qdot(s)}map {{ {table.export_expr('it', LONG)} }}{qdot(s)}toTypedArray()"
        ),
    )

    def array_import(e: str, s: TypeShape) -> str:
        inner = table.import_expr("it", s.first_type_arg())
        if inner == "it":
            return e
        return f"{e}{qdot(s)}map {{ {inner} }}{qdot(s)}toTypedArray()"

    def array_export(e: str, s: TypeShape) -> str:
        inner = table.export_expr("it", s.first_type_arg())
        if inner == "it":
            return e
        return f"{e}{qdot(s)}map {{ {inner} }}{qdot(s)}toTypedArray()"

    table.register(
        ARRAY,
        exported_shape=lambda s: array_of(table.exported_shape(s.first_type_arg())),
        import_expr=array_import,
        export_expr=array_export,
    )

    def list_import(e: str, s: TypeShape) -> str:
        inner = table.import_expr("it", s.first_type_arg())
        if inner == "it":
            return f"{e}{qdot(s)}toList()"
        return f"{e}{qdot(s)}map {{ {inner} }}"

    def list_export(e: str, s: TypeShape) -> str:
        inner = table.export_expr("it", s.first_type_arg())
        if inner == "it":
            return f"{e}{qdot(s)}toTypedArray()"
        return f"{e}{qdot(s)}map {{ {inner} }}{qdot(s)}toTypedArray()"

    table.register(
        LIST,
        exported_shape=lambda s: array_of(table.exported_shape(s.first_type_arg())),
        import_expr=list_import,
        export_expr=list_export,
    )

    # dict.fromkeys drops duplicates, first occurrence wins
    for exception in dict.fromkeys([*ALL_KOTLIN_EXCEPTIONS, *extra_exceptions]):
        register_exception(table, exception)

    def function_exported_shape(s: TypeShape) -> TypeShape:
        return s.with_type_args(tuple(table.exported_shape(a) for a in s.type_args))

    def function_import(e: str, s: TypeShape) -> str:
        *params, return_type = s.type_args

        def build(target: str) -> str:
            names = _lambda_parameter_names(len(params), target)
            args = ", ".join(table.export_expr(n, p) for n, p in zip(names, params))
            body = table.import_expr(f"{target}({args})", return_type)
            return _lambda([(n, type_to_source(p)) for n, p in zip(names, params)], body)

        return _nullable_let(e, s, build)

    def function_export(e: str, s: TypeShape) -> str:
        *params, return_type = s.type_args

        def build(target: str) -> str:
            names = _lambda_parameter_names(len(params), target)
            args = ", ".join(table.import_expr(n, p) for n, p in zip(names, params))
            body = table.export_expr(f"{target}({args})", return_type)
            return _lambda(
                [(n, type_to_source(table.exported_shape(p))) for n, p in zip(names, params)],
                body,
            )

        return _nullable_let(e, s, build)

    table.register_predicate(
        is_function_type,
        exported_shape=function_exported_shape,
        import_expr=function_import,
        export_expr=function_export,
        description="kotlin.FunctionN",
    )


def register_exception(table: TypeMappingTable, exception: TypeShape) -> None:
    """Expose *exception* as the JS Error type, keeping the native throwable as its cause."""
    simple = exception.name if exception.package == "kotlin" else exception.qualified_name

    def import_expr(e: str, s: TypeShape) -> str:
        if s.nullable:
            return f"{e}?.cause as {simple}?"
        return f"{e}.cause as {simple}"

    def export_expr(e: str, s: TypeShape) -> str:
        if s.nullable:
            return f"{e}?.let {{ {ERROR.name}(cause = it) }}"
        return f"{ERROR.name}(cause = {e})"

    table.register(
        exception,
        exported_shape=lambda s: ERROR,
        import_expr=import_expr,
        export_expr=export_expr,
    )


def register_exported_declaration(
    table: TypeMappingTable,
    native: TypeShape,
    export_name: str,
    erase_package: bool,
) -> None:
    """
    Route references to a declaration exported in this session through its
    generated wrapper and conversion functions.
    """
    wrapper = TypeShape(export_name, facade_package(native.package, erase_package))
    rule_args = {
        "exported_shape": lambda s: wrapper,
        "import_expr": lambda e, s: f"{e}{qdot(s)}import{export_name}()",
        "export_expr": lambda e, s: f"{e}{qdot(s)}export{export_name}()",
    }
    if native.type_args:
        # Generic instantiations share a raw key; match on the type arguments too.
        table.register_predicate(
            lambda s: s.raw_key == native.raw_key and s.type_args == native.type_args,
            description=str(native),
            **rule_args,
        )
    else:
        table.register(native, **rule_args)


def build_mapping_table(
    exported: Iterable[tuple[TypeShape, str]] = (),
    extra_exceptions: Iterable[TypeShape] = (),
    erase_package: bool = False,
) -> TypeMappingTable:
    """
    Build the frozen table for an export session.

    *exported* lists ``(native shape, export name)`` pairs for every
    declaration exported in the session.
    """
    table = TypeMappingTable()
    register_builtin_rules(table, extra_exceptions)
    for native, export_name in exported:
        register_exported_declaration(table, native, export_name, erase_package)
    return table.freeze()
