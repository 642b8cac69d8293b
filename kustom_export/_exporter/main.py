"""
Export pipeline: discover declarations, build the facades, write them out.

Transformations only need plain data (descriptors and type shapes), so with
more than one job they run in worker processes that rebuild the mapping table
from the same inputs as the main process.
"""

from __future__ import annotations

import concurrent.futures
import logging
import multiprocessing
import shutil
import time
from collections.abc import Iterable, Sequence
from pathlib import Path

from kustom_export._discovery.jvm import (
    DEFAULT_ANNOTATION,
    DEFAULT_GENERICS_ANNOTATION,
    GenericsSpec,
    discover,
)
from kustom_export._emit.writer import write_file, write_sources_manifest
from kustom_export._exporter.context import ExportContext
from kustom_export._exporter.descriptors import SourceLocation
from kustom_export._exporter.errors import Diagnostic
from kustom_export._exporter.export import (
    ExportResult,
    Request,
    export_request,
    exported_types,
    sealed_base_types,
    session_context,
)
from kustom_export._exporter.mapping import build_mapping_table
from kustom_export._exporter.types import TypeShape
from kustom_export._log import configure_logging

log = logging.getLogger(__name__)

# Per-process context, set up by _worker_init.
_worker_ctx: ExportContext | None = None


def build_context(
    requests: Sequence[Request],
    extra_exceptions: Iterable[TypeShape] = (),
    erase_package: bool = False,
) -> ExportContext:
    exported = exported_types(requests)
    table = build_mapping_table(exported, extra_exceptions, erase_package)
    return session_context(table, exported, sealed_base_types(requests), erase_package)


def _worker_init(
    exported: list[tuple[TypeShape, str]],
    sealed: list[TypeShape],
    extra_exceptions: list[TypeShape],
    erase_package: bool,
    log_level: int,
) -> None:
    """Rebuild the (unpicklable) mapping table in this worker process."""
    global _worker_ctx

    configure_logging(log_level)
    table = build_mapping_table(exported, extra_exceptions, erase_package)
    _worker_ctx = session_context(table, exported, sealed, erase_package)


def _export_in_worker(request: Request) -> ExportResult:
    if _worker_ctx is None:
        raise RuntimeError("Worker process used before _worker_init ran")
    return export_request(request, _worker_ctx)


def export_all(
    requests: Sequence[Request],
    extra_exceptions: Sequence[TypeShape] = (),
    erase_package: bool = False,
    jobs: int = 1,
) -> list[ExportResult]:
    """Export every request, results are returned in request order."""
    if jobs <= 1 or len(requests) <= 1:
        ctx = build_context(requests, extra_exceptions, erase_package)
        return [export_request(r, ctx) for r in requests]

    # "spawn" keeps workers independent of any JVM running in this process.
    mp_context = multiprocessing.get_context("spawn")
    with concurrent.futures.ProcessPoolExecutor(
        max_workers=jobs,
        initializer=_worker_init,
        initargs=(
            exported_types(requests),
            sealed_base_types(requests),
            list(extra_exceptions),
            erase_package,
            log.getEffectiveLevel(),
        ),
        mp_context=mp_context,
    ) as pool:
        return list(pool.map(_export_in_worker, requests))


def write_results(results: Iterable[ExportResult], output_dir: Path) -> dict[Path, list[SourceLocation]]:
    written: dict[Path, list[SourceLocation]] = {}
    for result in results:
        if result.file is None:
            continue
        path = write_file(result.file, output_dir)
        if path in written:
            log.warning(f"{path} generated more than once, keeping the last one")
        written[path] = list(result.sources)
    return written


def convert_to_js_facades(
    input_paths: list[Path],
    output_dir: Path,
    *,
    erase_package: bool = False,
    generics: Iterable[GenericsSpec] = (),
    annotation: str = DEFAULT_ANNOTATION,
    generics_annotation: str = DEFAULT_GENERICS_ANNOTATION,
    jvmpath: str | None = None,
    clear_output_dir: bool = True,
    jobs: int = 1,
) -> list[Diagnostic]:
    """
    Generate the facades of the annotated declarations found in *input_paths*.

    Accepts ``.jar``/``.aar`` files and directories of ``.class`` files.
    Writes one Kotlin file per exported declaration under *output_dir*,
    plus a manifest of the sources each file was generated from.

    Declarations that cannot be exported are skipped; their diagnostics are
    logged and returned.
    """
    if clear_output_dir and len(output_dir.resolve().parts) < 3:
        raise ValueError(
            f"output_dir '{output_dir}' is dangerously close to the filesystem root, "
            "refusing to delete it."
        )

    found = discover(
        input_paths,
        annotation=annotation,
        generics=generics,
        jvmpath=jvmpath,
        generics_annotation=generics_annotation,
    )

    t0 = time.perf_counter()
    results = export_all(found.requests, found.extra_exceptions, erase_package, jobs)
    diagnostics = list(found.diagnostics)
    for result in results:
        diagnostics.extend(result.diagnostics)

    if clear_output_dir:
        shutil.rmtree(output_dir, ignore_errors=True)
    written = write_results(results, output_dir)
    write_sources_manifest(output_dir, written)

    elapsed = time.perf_counter() - t0
    log.info(
        f"Wrote {len(written)} file(s) to {output_dir} in {elapsed:.2f}s, "
        f"{len(diagnostics)} declaration(s) skipped"
    )
    for d in diagnostics:
        log.error(str(d))
    return diagnostics
