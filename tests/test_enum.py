import pytest

from kustom_export._emit.render import render_file
from kustom_export._exporter.descriptors import EnumDescriptor
from kustom_export._exporter.enum_transformer import entries_holder_name, transform_enum
from kustom_export._exporter.errors import UnsupportedDeclarationError
from kustom_export._exporter.types import STRING, TypeShape, array_of

SEASON = EnumDescriptor("com.example", "Season", ("WINTER", "SPRING", "SUMMER", "AUTUMN"))
WRAPPER = TypeShape("Season", "com.example.js")

EXPECTED_SEASON = """\
package com.example.js

import com.example.Season as CommonSeason

@JsExport
public class Season internal constructor(
    internal val value: CommonSeason
) {
    public val name: String = value.name
}

public fun Season.importSeason(): CommonSeason = value

public fun CommonSeason.exportSeason(): Season = Season(this)

@JsExport
public object Seasons {
    public val WINTER: Season = CommonSeason.WINTER.exportSeason()

    public val SPRING: Season = CommonSeason.SPRING.exportSeason()

    public val SUMMER: Season = CommonSeason.SUMMER.exportSeason()

    public val AUTUMN: Season = CommonSeason.AUTUMN.exportSeason()
}

@JsExport
public fun Season_values(): Array<Season> = arrayOf(Seasons.WINTER, Seasons.SPRING, Seasons.SUMMER, Seasons.AUTUMN)

@JsExport
public fun Season_valueOf(name: String): Season? {
    if (name == Seasons.WINTER.name) return Seasons.WINTER
    if (name == Seasons.SPRING.name) return Seasons.SPRING
    if (name == Seasons.SUMMER.name) return Seasons.SUMMER
    if (name == Seasons.AUTUMN.name) return Seasons.AUTUMN
    return null
}
"""


@pytest.fixture
def season_file(make_context):
    return transform_enum(SEASON, make_context((SEASON.native_shape, "Season")))


def test_entries_in_declaration_order(season_file):
    holder = season_file.type(entries_holder_name("Season"))
    assert [p.name for p in holder.properties] == ["WINTER", "SPRING", "SUMMER", "AUTUMN"]
    assert all(p.type == WRAPPER for p in holder.properties)
    assert holder.property("SUMMER").initializer == "CommonSeason.SUMMER.exportSeason()"


def test_values(season_file):
    values = season_file.function("Season_values")
    assert values.return_type == array_of(WRAPPER)
    assert values.expression_body == "arrayOf(Seasons.WINTER, Seasons.SPRING, Seasons.SUMMER, Seasons.AUTUMN)"


def test_value_of(season_file):
    value_of = season_file.function("Season_valueOf")
    assert [(p.name, p.type) for p in value_of.parameters] == [("name", STRING)]
    assert value_of.return_type == WRAPPER.with_nullable(True)
    assert value_of.body[2] == "if (name == Seasons.SUMMER.name) return Seasons.SUMMER"
    assert value_of.body[-1] == "return null"


def test_wrapper(season_file):
    wrapper = season_file.type("Season")
    assert wrapper.property("name").initializer == "value.name"
    assert season_file.function("importSeason").expression_body == "value"
    assert season_file.function("exportSeason").expression_body == "Season(this)"


def test_rendered_enum(season_file):
    assert render_file(season_file) == EXPECTED_SEASON


def test_keyword_entries_are_escaped(make_context):
    direction = EnumDescriptor("com.example", "Direction", ("in", "out"))
    file = transform_enum(direction, make_context())
    holder = file.type("Directions")
    assert [p.name for p in holder.properties] == ["`in`", "out"]
    assert holder.property("`in`").initializer == "CommonDirection.`in`.exportDirection()"


def test_duplicate_entries(make_context):
    broken = EnumDescriptor("com.example", "Broken", ("A", "B", "A"))
    with pytest.raises(UnsupportedDeclarationError):
        transform_enum(broken, make_context())


def test_entries_holder_clashing_with_exported_declaration(make_context):
    seasons = TypeShape("Seasons", "com.example")
    ctx = make_context((SEASON.native_shape, "Season"), (seasons, "Seasons"))
    with pytest.raises(UnsupportedDeclarationError, match="Seasons"):
        transform_enum(SEASON, ctx)


def test_entries_holder_in_another_package(make_context):
    seasons = TypeShape("Seasons", "com.other")
    file = transform_enum(SEASON, make_context((SEASON.native_shape, "Season"), (seasons, "Seasons")))
    assert file.type("Seasons").kind == "object"


def test_entries_holder_clash_with_erased_package(make_context):
    seasons = TypeShape("Seasons", "com.other")
    ctx = make_context((SEASON.native_shape, "Season"), (seasons, "Seasons"), erase_package=True)
    with pytest.raises(UnsupportedDeclarationError):
        transform_enum(SEASON, ctx)
