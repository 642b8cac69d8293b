import pytest

from kustom_export._exporter.descriptors import (
    ClassDescriptor,
    EnumDescriptor,
    FunctionDescriptor,
    InterfaceDescriptor,
    ParameterDescriptor,
    PropertyDescriptor,
    SourceLocation,
    SuperDescriptor,
)
from kustom_export._exporter.errors import GenericArityError, UnsupportedDeclarationError
from kustom_export._exporter.generics import bind_generics, resolve_generics, substitute
from kustom_export._exporter.types import LONG, STRING, TypeShape, list_of

T = TypeShape("T")

TEMPLATE = ClassDescriptor(
    package="com.example",
    simple_name="Template",
    generic_params=("T",),
    supers=(SuperDescriptor(TypeShape("Holder", "com.example", (T,))),),
    constructor_params=(ParameterDescriptor("value", T),),
    properties=(PropertyDescriptor("value", T), PropertyDescriptor("maybe", T.with_nullable(True))),
    functions=(FunctionDescriptor("all", list_of(T), (ParameterDescriptor("extra", T),)),),
    origin=SourceLocation("Template.kt", 3),
)


def test_bind_generics():
    binding = bind_generics(["K", "V"], [STRING, LONG])
    assert dict(binding) == {"K": STRING, "V": LONG}
    with pytest.raises(TypeError):
        binding["K"] = LONG


def test_bind_generics_arity():
    with pytest.raises(GenericArityError):
        bind_generics(["T"], [])
    with pytest.raises(GenericArityError):
        bind_generics(["T"], [STRING, LONG])


def test_substitute():
    binding = {"T": LONG}
    assert substitute(T, binding) == LONG
    assert substitute(T.with_nullable(True), binding) == LONG.with_nullable(True)
    assert substitute(list_of(T), binding) == list_of(LONG)
    assert substitute(TypeShape("U"), binding) == TypeShape("U")
    assert substitute(T, {"T": STRING.with_nullable(True)}) == STRING.with_nullable(True)


def test_resolve_class():
    resolved = resolve_generics(TEMPLATE, [LONG], "LongTemplate")
    assert resolved.generic_params == ()
    assert resolved.type_args == (LONG,)
    assert resolved.exported_name == "LongTemplate"
    assert resolved.native_shape == TypeShape("Template", "com.example", (LONG,))
    assert resolved.constructor_params == (ParameterDescriptor("value", LONG),)
    assert resolved.properties[0].type == LONG
    assert resolved.properties[1].type == LONG.with_nullable(True)
    assert resolved.functions[0].return_type == list_of(LONG)
    assert resolved.functions[0].parameters[0].type == LONG
    assert resolved.supers[0].type == TypeShape("Holder", "com.example", (LONG,))
    # The original descriptor is untouched.
    assert TEMPLATE.generic_params == ("T",)


def test_resolve_interface():
    source = InterfaceDescriptor(
        package="com.example",
        simple_name="Provider",
        generic_params=("T",),
        functions=(FunctionDescriptor("get", T),),
    )
    resolved = resolve_generics(source, [STRING])
    assert resolved.functions[0].return_type == STRING
    assert resolved.exported_name == "Provider"


def test_resolve_arity_error_has_location():
    with pytest.raises(GenericArityError) as exc_info:
        resolve_generics(TEMPLATE, [LONG, STRING], "Broken")
    assert exc_info.value.location == SourceLocation("Template.kt", 3)


def test_resolve_enum_is_unsupported():
    with pytest.raises(UnsupportedDeclarationError):
        resolve_generics(EnumDescriptor("com.example", "Season", ("WINTER",)), [STRING])
