import argparse
import logging
import os
import sys
import time
from pathlib import Path

from kustom_export._discovery.jvm import DEFAULT_ANNOTATION, DEFAULT_GENERICS_ANNOTATION, GenericsSpec
from kustom_export._exporter.main import convert_to_js_facades
from kustom_export._log import configure_logging

log = logging.getLogger(__name__)


def _generics_spec(text: str) -> GenericsSpec:
    try:
        return GenericsSpec.parse(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kustom-export",
        description="Generate JavaScript-friendly Kotlin facades for annotated Kotlin declarations.",
    )
    parser.add_argument(
        "inputs",
        type=str,
        nargs="+",
        help="List of .jar/.aar files or directories containing compiled .class files.",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default="./build/generated/kustom-export",
        help="path to write facades to (default: ./build/generated/kustom-export)",
    )
    parser.add_argument(
        "--erase-package",
        action="store_true",
        default=False,
        help="generate facades in the root package instead of '<package>.js'",
    )
    parser.add_argument(
        "--export-generics",
        type=_generics_spec,
        action="append",
        default=[],
        metavar="NAME=CLASS<ARGS>",
        help=(
            "export an instantiation of a generic class or interface, "
            "e.g. 'LongTemplate=foo.Template<kotlin.Long>' (repeatable)"
        ),
    )
    parser.add_argument(
        "--annotation",
        type=str,
        default=DEFAULT_ANNOTATION,
        help=f"fully qualified name of the export annotation (default: {DEFAULT_ANNOTATION})",
    )
    parser.add_argument(
        "--generics-annotation",
        type=str,
        default=DEFAULT_GENERICS_ANNOTATION,
        help=(
            "fully qualified name of the file annotation requesting generics instantiations "
            f"(default: {DEFAULT_GENERICS_ANNOTATION})"
        ),
    )
    parser.add_argument(
        "--jvmpath",
        type=str,
        help='path to the JVM ("libjvm.so", "jvm.dll", ...) (default: use system default JVM)',
    )
    parser.add_argument(
        "--no-clean",
        action="store_true",
        default=False,
        help="skip clearing the output directory before generating facades",
    )
    parser.add_argument(
        "--jobs",
        type=int,
        default=os.cpu_count() or 1,
        help="number of worker processes used to generate facades (default: CPU count)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    input_paths: list[Path] = []
    for inp in args.inputs:
        path = Path(inp)
        if path.suffix.lower() in (".jar", ".aar") and path.is_file():
            input_paths.append(path)
        elif path.is_dir():
            input_paths.append(path)
        else:
            parser.error(f"Input {inp!r} is neither a .jar/.aar file nor a directory.")
    if args.jobs < 1:
        parser.error("--jobs must be at least 1")

    output_dir = Path(args.output_dir)
    log.info(f"Generating facades for {[str(p) for p in input_paths]} to {output_dir}")
    t0 = time.perf_counter()
    diagnostics = convert_to_js_facades(
        input_paths,
        output_dir,
        erase_package=args.erase_package,
        generics=args.export_generics,
        annotation=args.annotation,
        generics_annotation=args.generics_annotation,
        jvmpath=args.jvmpath,
        clear_output_dir=not args.no_clean,
        jobs=args.jobs,
    )
    elapsed = time.perf_counter() - t0
    log.info(f"Generation done in {elapsed:.1f}s.")
    return 1 if diagnostics else 0


if __name__ == "__main__":
    sys.exit(main())
