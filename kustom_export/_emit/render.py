"""Kotlin source text output for a facade file AST."""

from __future__ import annotations

from kustom_export._exporter.kotlin_ast import (
    ConstructorSpec,
    FileSpec,
    FunSpec,
    Member,
    ParameterSpec,
    PropertySpec,
    TypeSpec,
    referenced_shapes,
)
from kustom_export._exporter.types import DEFAULT_IMPORTED_PACKAGES, TypeShape, is_function_type

INDENT = "    "


class TypeNamer:
    """
    Decide how each referenced type is written and which imports it needs.

    Types are written by simple name and imported, except for types of the
    file package or of default-imported packages, which need no import.
    Aliased imports use their alias. A type whose simple name is already taken
    by a declaration of the file or an earlier import is written fully qualified.
    """

    def __init__(self, file: FileSpec) -> None:
        self.package = file.package
        self.aliases = dict(file.aliased_imports)
        self.imports: set[str] = set()
        self._names: dict[str, str] = {}

        claimed: dict[str, str] = {alias: qualified for qualified, alias in self.aliases.items()}
        for t in file.types():
            claimed.setdefault(t.name, f"{self.package}.{t.name}" if self.package else t.name)

        keys = {
            shape.raw_key
            for shape in referenced_shapes(file)
            if shape.package and not is_function_type(shape)
        }
        for package, name in sorted(keys):
            qualified = f"{package}.{name}"
            if qualified in self.aliases:
                continue
            owner = claimed.get(name)
            if owner is None:
                claimed[name] = qualified
                if package != self.package and package not in DEFAULT_IMPORTED_PACKAGES:
                    self.imports.add(qualified)
                self._names[qualified] = name
            elif owner == qualified:
                self._names[qualified] = name
            else:
                self._names[qualified] = qualified

    def name(self, shape: TypeShape) -> str:
        if is_function_type(shape):
            *params, ret = shape.type_args
            text = f"({', '.join(self.name(p) for p in params)}) -> {self.name(ret)}"
            return f"({text})?" if shape.nullable else text
        qualified = shape.qualified_name
        if qualified in self.aliases:
            text = self.aliases[qualified]
        elif not shape.package:
            text = shape.name
        else:
            text = self._names.get(qualified, qualified)
        if shape.type_args:
            text += "<" + ", ".join(self.name(a) for a in shape.type_args) + ">"
        if shape.nullable:
            text += "?"
        return text


def _indented(text: str, prefix: str = INDENT) -> str:
    """Prefix every line of a (possibly multi-line) snippet, keeping blank lines empty."""
    return "\n".join(prefix + line if line.strip() else "" for line in text.split("\n"))


def _modifiers(modifiers: list[str]) -> str:
    return "".join(m + " " for m in modifiers)


def _kdoc(lines: list[str]) -> list[str]:
    if not lines:
        return []
    return ["/**"] + [f" * {line}" if line else " *" for line in lines] + [" */"]


def _annotations(annotations: list[TypeShape], namer: TypeNamer) -> list[str]:
    return [f"@{namer.name(a)}" for a in annotations]


def _parameter(p: ParameterSpec, namer: TypeNamer) -> str:
    return f"{_modifiers(p.modifiers)}{p.name}: {namer.name(p.type)}"


def render_property(p: PropertySpec, namer: TypeNamer) -> list[str]:
    head = f"{_modifiers(p.modifiers)}{'var' if p.mutable else 'val'} {p.name}: {namer.name(p.type)}"
    lines = _annotations(p.annotations, namer)
    if p.initializer is not None:
        return lines + [f"{head} = {p.initializer}"]
    lines.append(head)
    if p.getter is not None:
        lines.append(_indented(f"get() = {p.getter}"))
    if p.setter is not None:
        lines.append(f"{INDENT}set(value) {{")
        lines += [_indented(s, INDENT * 2) for s in p.setter]
        lines.append(f"{INDENT}}}")
    return lines


def render_function(f: FunSpec, namer: TypeNamer) -> list[str]:
    receiver = f"{namer.name(f.receiver)}." if f.receiver is not None else ""
    params = ", ".join(_parameter(p, namer) for p in f.parameters)
    head = f"{_modifiers(f.modifiers)}fun {receiver}{f.name}({params})"
    if f.return_type is not None:
        head += f": {namer.name(f.return_type)}"
    lines = _annotations(f.annotations, namer)
    if f.expression_body is not None:
        lines.append(f"{head} = {f.expression_body}")
    elif f.body is not None:
        lines.append(head + " {")
        lines += [_indented(s) for s in f.body]
        lines.append("}")
    else:
        lines.append(head)
    return lines


def _render_constructor(c: ConstructorSpec, namer: TypeNamer) -> list[str]:
    params = ", ".join(_parameter(p, namer) for p in c.parameters)
    line = f"{_modifiers(c.modifiers)}constructor({params})"
    if c.delegate is not None:
        line += f" : {c.delegate}"
    return [line]


def render_type(t: TypeSpec, namer: TypeNamer) -> list[str]:
    lines = _kdoc(t.kdoc) + _annotations(t.annotations, namer)

    header = f"{_modifiers(t.modifiers)}{t.kind} {t.name}"
    ctor = t.primary_constructor
    ctor_lines: list[str] = []
    if ctor is not None and (ctor.parameters or ctor.modifiers):
        header += f" {' '.join(ctor.modifiers)} constructor(" if ctor.modifiers else "("
        if ctor.parameters:
            params = [INDENT + _parameter(p, namer) for p in ctor.parameters]
            ctor_lines = [p + "," for p in params[:-1]] + [params[-1]]
            ctor_close = ")"
        else:
            header += ")"
            ctor_close = ""
    supers = []
    if t.superclass is not None:
        # Only abstract sealed wrappers are extended, through their empty constructor.
        supers.append(f"{namer.name(t.superclass)}()")
    supers += [namer.name(s) for s in t.superinterfaces]
    supers_text = f" : {', '.join(supers)}" if supers else ""

    blocks: list[list[str]] = []
    blocks += [render_property(p, namer) for p in t.properties]
    blocks += [_render_constructor(c, namer) for c in t.constructors]
    blocks += [render_function(f, namer) for f in t.functions]
    body_open = " {" if blocks else ""

    if ctor_lines:
        lines.append(header)
        lines += ctor_lines
        lines.append(ctor_close + supers_text + body_open)
    else:
        lines.append(header + supers_text + body_open)

    if blocks:
        for i, block in enumerate(blocks):
            if i:
                lines.append("")
            lines += [_indented(line) for line in block]
        lines.append("}")
    return lines


def render_member(member: Member, namer: TypeNamer) -> list[str]:
    if isinstance(member, TypeSpec):
        return render_type(member, namer)
    if isinstance(member, FunSpec):
        return render_function(member, namer)
    return render_property(member, namer)


def render_file(file: FileSpec) -> str:
    namer = TypeNamer(file)
    out: list[str] = []
    if file.package:
        out += [f"package {file.package}", ""]

    imports = [f"import {q}" for q in sorted(namer.imports)]
    imports += [f"import {q} as {alias}" for q, alias in sorted(file.aliased_imports.items())]
    if imports:
        out += imports + [""]

    for i, member in enumerate(file.members):
        if i:
            out.append("")
        out += render_member(member, namer)

    # Multi-line snippets are kept as embedded newlines until here.
    text = "\n".join(out)
    return "\n".join(line.rstrip() for line in text.split("\n")) + "\n"
