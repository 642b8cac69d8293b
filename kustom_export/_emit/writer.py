"""Writing rendered facade files and the sources manifest."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from kustom_export._emit.render import render_file
from kustom_export._exporter.descriptors import SourceLocation
from kustom_export._exporter.kotlin_ast import FileSpec

log = logging.getLogger(__name__)

SOURCES_MANIFEST = "kustom-export-sources.json"


def output_path(file: FileSpec, output_dir: Path) -> Path:
    """``<output_dir>/<package path>/<FileName>.kt``"""
    package_dir = output_dir.joinpath(*file.package.split(".")) if file.package else output_dir
    return package_dir / f"{file.name}.kt"


def write_file(file: FileSpec, output_dir: Path) -> Path:
    path = output_path(file, output_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(render_file(file))
    log.debug(f"Wrote {path}")
    return path


def write_sources_manifest(
    output_dir: Path, written: Mapping[Path, Iterable[SourceLocation]]
) -> Path:
    """
    Record which source locations each generated file was produced from, so a
    build tool can invalidate generated files when one of their sources changes.
    """
    manifest = {
        path.relative_to(output_dir).as_posix(): [str(s) for s in sources]
        for path, sources in written.items()
    }
    manifest_path = output_dir / SOURCES_MANIFEST
    manifest_path.parent.mkdir(parents=True, exist_ok=True)
    manifest_path.write_text(json.dumps(manifest, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return manifest_path
