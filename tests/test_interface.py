import pytest

from kustom_export._emit.render import render_file
from kustom_export._exporter.descriptors import (
    FunctionDescriptor,
    InterfaceDescriptor,
    ParameterDescriptor,
    PropertyDescriptor,
    SuperDescriptor,
)
from kustom_export._exporter.errors import UnresolvedGenericsError
from kustom_export._exporter.interface_transformer import transform_interface
from kustom_export._exporter.types import DOUBLE, LONG, STRING, UNIT, TypeShape

LISTENER = InterfaceDescriptor(
    package="com.example",
    simple_name="Listener",
    properties=(PropertyDescriptor("id", LONG),),
    functions=(FunctionDescriptor("onEvent", LONG, (ParameterDescriptor("value", LONG),)),),
)
WRAPPER = TypeShape("Listener", "com.example.js")


@pytest.fixture
def listener_file(make_context):
    return transform_interface(LISTENER, make_context((LISTENER.native_shape, "Listener")))


def test_exported_interface(listener_file):
    assert [t.name for t in listener_file.types()] == [
        "Listener",
        "ExportedListener",
        "ImportedListener",
    ]
    interface = listener_file.type("Listener")
    assert interface.kind == "interface"
    assert interface.property("id").type == DOUBLE
    assert interface.property("id").getter is None
    on_event = interface.function("onEvent")
    assert on_event.is_abstract
    assert [p.type for p in on_event.parameters] == [DOUBLE]
    assert on_event.return_type == DOUBLE


def test_exported_adapter(listener_file):
    adapter = listener_file.type("ExportedListener")
    assert adapter.modifiers == ["private"]
    assert adapter.superinterfaces == [WRAPPER]
    assert adapter.property("id").getter == "common.id.toDouble()"
    assert adapter.function("onEvent").body == [
        "val result = common.onEvent(value = value.toLong())",
        "return result.toDouble()",
    ]


def test_imported_adapter(listener_file):
    adapter = listener_file.type("ImportedListener")
    assert adapter.superinterfaces == [LISTENER.native_shape]
    assert adapter.property("id").type == LONG
    assert adapter.property("id").getter == "exported.id.toLong()"
    on_event = adapter.function("onEvent")
    assert [p.type for p in on_event.parameters] == [LONG]
    assert on_event.body == [
        "val result = exported.onEvent(value = value.toDouble())",
        "return result.toLong()",
    ]


def test_conversions_unwrap_adapters(listener_file):
    assert (
        listener_file.function("importListener").expression_body
        == "(this as? ExportedListener)?.common ?: ImportedListener(this)"
    )
    assert (
        listener_file.function("exportListener").expression_body
        == "(this as? ImportedListener)?.exported ?: ExportedListener(this)"
    )


def test_rendered_interface(listener_file):
    text = render_file(listener_file)
    assert "@JsExport\npublic interface Listener {\n    public val id: Double\n\n    public fun onEvent(value: Double): Double\n}\n" in text
    assert "private class ExportedListener(\n    val common: CommonListener\n) : Listener {\n" in text
    assert "private class ImportedListener(\n    val exported: Listener\n) : CommonListener {\n" in text


def test_super_interfaces(make_context):
    named = TypeShape("Named", "com.example")
    child = InterfaceDescriptor(
        package="com.example",
        simple_name="Child",
        supers=(SuperDescriptor(named),),
        properties=(PropertyDescriptor("name", LONG, is_override=True),),
    )
    file = transform_interface(child, make_context((named, "Named"), (child.native_shape, "Child")))
    interface = file.type("Child")
    assert interface.superinterfaces == [TypeShape("Named", "com.example.js")]
    assert interface.property("name").modifiers == ["override"]


def test_open_generics_are_rejected(make_context):
    provider = InterfaceDescriptor("com.example", "Provider", generic_params=("T",))
    with pytest.raises(UnresolvedGenericsError):
        transform_interface(provider, make_context())


def test_adapter_delegates_avoid_parameter_names(make_context):
    sink = InterfaceDescriptor(
        package="com.example",
        simple_name="Sink",
        functions=(
            FunctionDescriptor(
                "push",
                UNIT,
                (ParameterDescriptor("common", STRING), ParameterDescriptor("exported", STRING)),
            ),
        ),
    )
    file = transform_interface(sink, make_context())
    exported_adapter = file.type("ExportedSink")
    assert exported_adapter.primary_constructor.parameters[0].name == "common_"
    assert exported_adapter.function("push").body == [
        "common_.push(common = common, exported = exported)"
    ]
    imported_adapter = file.type("ImportedSink")
    assert imported_adapter.primary_constructor.parameters[0].name == "exported_"
    assert imported_adapter.function("push").body == [
        "exported_.push(common = common, exported = exported)"
    ]
