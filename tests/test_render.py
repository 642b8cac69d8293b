from kustom_export._emit.render import TypeNamer, render_file
from kustom_export._exporter.kotlin_ast import FileSpec, FunSpec, ParameterSpec, PropertySpec, TypeSpec
from kustom_export._exporter.types import LONG, STRING, TypeShape, function_type, list_of


def _file(*shapes: TypeShape, package: str = "com.example.js") -> FileSpec:
    return FileSpec(
        package=package,
        name="Sample",
        members=[
            FunSpec(
                name="sample",
                parameters=[ParameterSpec(f"p{i}", s) for i, s in enumerate(shapes)],
                body=[],
            )
        ],
    )


def test_imports_by_simple_name():
    namer = TypeNamer(_file(TypeShape("Widget", "com.other")))
    assert namer.imports == {"com.other.Widget"}
    assert namer.name(TypeShape("Widget", "com.other", nullable=True)) == "Widget?"


def test_default_packages_and_file_package_are_not_imported():
    namer = TypeNamer(_file(STRING, list_of(LONG), TypeShape("Local", "com.example.js")))
    assert namer.imports == set()
    assert namer.name(list_of(LONG)) == "List<Long>"
    assert namer.name(TypeShape("Local", "com.example.js")) == "Local"


def test_clashing_simple_names_are_qualified():
    first = TypeShape("Widget", "com.a")
    second = TypeShape("Widget", "com.b")
    namer = TypeNamer(_file(first, second))
    assert namer.imports == {"com.a.Widget"}
    assert namer.name(first) == "Widget"
    assert namer.name(second) == "com.b.Widget"


def test_declared_types_take_precedence():
    file = _file(TypeShape("Sample", "com.other"))
    file.members.append(TypeSpec(kind="class", name="Sample"))
    namer = TypeNamer(file)
    assert namer.imports == set()
    assert namer.name(TypeShape("Sample", "com.other")) == "com.other.Sample"


def test_aliased_imports():
    file = _file(list_of(TypeShape("Season", "com.example")))
    file.aliased_imports["com.example.Season"] = "CommonSeason"
    namer = TypeNamer(file)
    assert namer.imports == set()
    assert namer.name(list_of(TypeShape("Season", "com.example"))) == "List<CommonSeason>"


def test_function_types():
    shape = function_type([TypeShape("Widget", "com.other")], STRING, nullable=True)
    namer = TypeNamer(_file(shape))
    assert namer.imports == {"com.other.Widget"}
    assert namer.name(shape) == "((Widget) -> String)?"


def test_render_file_layout():
    file = FileSpec(
        package="com.example.js",
        name="Sample",
        members=[
            TypeSpec(
                kind="class",
                name="Sample",
                modifiers=["public"],
                properties=[
                    PropertySpec("size", LONG, ["public"], getter="1L"),
                ],
            ),
            FunSpec(
                name="sample",
                modifiers=["public"],
                return_type=TypeShape("Widget", "com.other"),
                body=["val w = Widget()", "return w"],
            ),
            TypeSpec(kind="class", name="Empty", modifiers=["private"]),
        ],
    )
    assert render_file(file) == (
        "package com.example.js\n"
        "\n"
        "import com.other.Widget\n"
        "\n"
        "public class Sample {\n"
        "    public val size: Long\n"
        "        get() = 1L\n"
        "}\n"
        "\n"
        "public fun sample(): Widget {\n"
        "    val w = Widget()\n"
        "    return w\n"
        "}\n"
        "\n"
        "private class Empty\n"
    )


def test_root_package_has_no_header():
    text = render_file(FileSpec(package="", name="Empty", members=[TypeSpec(kind="class", name="Empty")]))
    assert text == "class Empty\n"
