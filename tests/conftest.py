from __future__ import annotations

import pytest

from kustom_export._exporter.context import ExportContext
from kustom_export._exporter.export import session_context
from kustom_export._exporter.mapping import build_mapping_table
from kustom_export._exporter.types import TypeShape


def _make_context(
    *exported: tuple[TypeShape, str],
    erase_package: bool = False,
    sealed: tuple[TypeShape, ...] = (),
) -> ExportContext:
    table = build_mapping_table(exported, erase_package=erase_package)
    return session_context(table, exported, sealed, erase_package)


@pytest.fixture
def make_context():
    """``make_context((native_shape, export_name), ..., erase_package=False, sealed=())``"""
    return _make_context
