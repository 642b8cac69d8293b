import pytest

from kustom_export._emit.render import render_file
from kustom_export._exporter.class_transformer import delegate_name, transform_class
from kustom_export._exporter.descriptors import (
    ClassDescriptor,
    FunctionDescriptor,
    ParameterDescriptor,
    PropertyDescriptor,
    SourceLocation,
    SuperDescriptor,
)
from kustom_export._exporter.errors import UnresolvedGenericsError, UnsupportedDeclarationError
from kustom_export._exporter.kotlin_ast import ParameterSpec
from kustom_export._exporter.types import DOUBLE, LONG, STRING, UNIT, TypeShape

PERSON = ClassDescriptor(
    package="com.example",
    simple_name="Person",
    constructor_params=(ParameterDescriptor("name", STRING), ParameterDescriptor("age", LONG)),
    properties=(
        PropertyDescriptor("name", STRING),
        PropertyDescriptor("age", LONG, is_mutable=True),
    ),
    functions=(
        FunctionDescriptor("greet", STRING, (ParameterDescriptor("times", LONG),)),
        FunctionDescriptor("birthYear", LONG, (ParameterDescriptor("result", LONG),)),
        FunctionDescriptor("reset", UNIT),
    ),
    origin=SourceLocation("Person.kt", 3),
)


@pytest.fixture
def person_file(make_context):
    return transform_class(PERSON, make_context((PERSON.native_shape, "Person")))


def test_wrapper(person_file):
    assert person_file.package == "com.example.js"
    assert person_file.name == "Person"
    assert person_file.aliased_imports == {"com.example.Person": "CommonPerson"}
    wrapper = person_file.type("Person")
    assert wrapper.modifiers == ["public"]
    assert wrapper.primary_constructor.modifiers == ["internal"]
    assert wrapper.primary_constructor.parameters == [
        ParameterSpec("common", PERSON.native_shape, ["internal", "val"])
    ]


def test_public_constructor(person_file):
    (ctor,) = person_file.type("Person").constructors
    assert [(p.name, p.type) for p in ctor.parameters] == [("name", STRING), ("age", DOUBLE)]
    assert ctor.delegate == "this(CommonPerson(name = name, age = age.toLong()))"


def test_properties(person_file):
    wrapper = person_file.type("Person")
    name = wrapper.property("name")
    assert name.type == STRING
    assert name.getter == "common.name"
    assert name.setter is None
    age = wrapper.property("age")
    assert age.type == DOUBLE
    assert age.mutable
    assert age.getter == "common.age.toDouble()"
    assert age.setter == ["common.age = value.toLong()"]


def test_functions(person_file):
    wrapper = person_file.type("Person")
    greet = wrapper.function("greet")
    assert greet.return_type == STRING
    assert greet.body == ["return common.greet(times = times.toLong())"]
    birth_year = wrapper.function("birthYear")
    assert birth_year.return_type == DOUBLE
    assert birth_year.body == [
        "val result_ = common.birthYear(result = result.toLong())",
        "return result_.toDouble()",
    ]
    reset = wrapper.function("reset")
    assert reset.return_type is None
    assert reset.body == ["common.reset()"]


def test_conversion_functions(person_file):
    import_fn = person_file.function("importPerson")
    assert import_fn.receiver == TypeShape("Person", "com.example.js")
    assert import_fn.return_type == PERSON.native_shape
    assert import_fn.expression_body == "this.common"
    export_fn = person_file.function("exportPerson")
    assert export_fn.receiver == PERSON.native_shape
    assert export_fn.expression_body == "Person(this)"


def test_rendered_class(person_file):
    text = render_file(person_file)
    assert text.startswith("package com.example.js\n\nimport com.example.Person as CommonPerson\n")
    assert "@JsExport\npublic class Person internal constructor(\n    internal val common: CommonPerson\n) {\n" in text
    assert "    public constructor(name: String, age: Double) : this(CommonPerson(name = name, age = age.toLong()))\n" in text
    assert "    public var age: Double\n        get() = common.age.toDouble()\n        set(value) {\n" in text
    assert "public fun Person.importPerson(): CommonPerson = this.common\n" in text
    assert text.endswith("public fun CommonPerson.exportPerson(): Person = Person(this)\n")


def test_empty_constructor(make_context):
    empty = ClassDescriptor("com.example", "Empty")
    file = transform_class(empty, make_context((empty.native_shape, "Empty")))
    (ctor,) = file.type("Empty").constructors
    assert ctor.parameters == []
    assert ctor.delegate == "this(CommonEmpty())"


def test_delegate_name_avoids_members():
    assert delegate_name("common", {"name"}) == "common"
    assert delegate_name("common", {"common", "common_"}) == "common__"


def test_member_named_common(make_context):
    holder = ClassDescriptor(
        "com.example", "Holder", properties=(PropertyDescriptor("common", STRING),)
    )
    file = transform_class(holder, make_context())
    wrapper = file.type("Holder")
    assert wrapper.primary_constructor.parameters[0].name == "common_"
    assert wrapper.property("common").getter == "common_.common"


def test_delegate_avoids_function_parameters(make_context):
    store = ClassDescriptor(
        "com.example",
        "Store",
        functions=(
            FunctionDescriptor("update", UNIT, (ParameterDescriptor("common", STRING),)),
        ),
    )
    file = transform_class(store, make_context())
    wrapper = file.type("Store")
    assert wrapper.primary_constructor.parameters[0].name == "common_"
    assert wrapper.function("update").body == ["common_.update(common = common)"]
    assert file.function("importStore").expression_body == "this.common_"


ANIMAL = TypeShape("Animal", "com.example")


def test_unknown_super_constructor_arguments(make_context):
    dog = ClassDescriptor(
        package="com.example",
        simple_name="Dog",
        supers=(SuperDescriptor(ANIMAL, is_class=True),),
        properties=(PropertyDescriptor("name", STRING, is_override=True),),
        functions=(FunctionDescriptor("bark", STRING),),
    )
    ctx = make_context((ANIMAL, "Animal"), (dog.native_shape, "Dog"), sealed=(ANIMAL,))
    file = transform_class(dog, ctx)
    wrapper = file.type("Dog")
    assert wrapper.superclass == TypeShape("Animal", "com.example.js")
    assert wrapper.constructors == []
    assert wrapper.kdoc
    assert wrapper.property("name").modifiers == ["override"]
    assert wrapper.function("bark").modifiers == ["public"]
    text = render_file(file)
    assert "\n) : Animal() {\n" in text
    assert text.startswith("package com.example.js\n\nimport com.example.Dog as CommonDog\n\n/**\n")


def test_known_super_constructor_arguments(make_context):
    base = TypeShape("Base", "com.example")
    derived = ClassDescriptor(
        package="com.example",
        simple_name="Derived",
        supers=(
            SuperDescriptor(base, is_class=True, constructor_params=(ParameterDescriptor("id", LONG),)),
            SuperDescriptor(TypeShape("Named", "com.example")),
        ),
        constructor_params=(ParameterDescriptor("id", LONG),),
    )
    ctx = make_context((base, "Base"), (derived.native_shape, "Derived"), sealed=(base,))
    wrapper = transform_class(derived, ctx).type("Derived")
    assert wrapper.superclass == TypeShape("Base", "com.example.js")
    assert wrapper.superinterfaces == [TypeShape("Named", "com.example")]
    assert not wrapper.kdoc
    (ctor,) = wrapper.constructors
    assert ctor.delegate == "this(CommonDerived(id = id.toLong()))"


@pytest.mark.parametrize("exported", [True, False])
def test_class_supertype_must_be_sealed(make_context, exported):
    dog = ClassDescriptor(
        package="com.example",
        simple_name="Dog",
        supers=(SuperDescriptor(ANIMAL, is_class=True),),
    )
    ctx = make_context((ANIMAL, "Animal")) if exported else make_context()
    with pytest.raises(UnsupportedDeclarationError, match="com.example.Animal"):
        transform_class(dog, ctx)


def test_open_generics_are_rejected(make_context):
    template = ClassDescriptor("com.example", "Template", generic_params=("T",))
    with pytest.raises(UnresolvedGenericsError):
        transform_class(template, make_context())
