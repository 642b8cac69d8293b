import pytest

from kustom_export import cli
from kustom_export._discovery.jvm import DEFAULT_ANNOTATION, DEFAULT_GENERICS_ANNOTATION, GenericsSpec
from kustom_export._exporter.errors import Diagnostic
from kustom_export._exporter.types import LONG


def test_defaults():
    args = cli.build_parser().parse_args(["lib.jar"])
    assert args.inputs == ["lib.jar"]
    assert args.annotation == DEFAULT_ANNOTATION
    assert args.generics_annotation == DEFAULT_GENERICS_ANNOTATION
    assert args.export_generics == []
    assert not args.erase_package
    assert not args.no_clean


def test_export_generics_is_repeatable():
    args = cli.build_parser().parse_args(
        [
            "lib.jar",
            "--export-generics",
            "LongTemplate=com.example.Template<Long>",
            "--export-generics",
            "StringTemplate=com.example.Template<String>",
        ]
    )
    assert [g.name for g in args.export_generics] == ["LongTemplate", "StringTemplate"]
    assert args.export_generics[0] == GenericsSpec("LongTemplate", "com.example.Template", (LONG,))


def test_invalid_export_generics():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["lib.jar", "--export-generics", "Template<Long>"])


def test_invalid_input(tmp_path):
    with pytest.raises(SystemExit):
        cli.main([str(tmp_path / "missing.jar")])


@pytest.mark.parametrize("diagnostics, status", [([], 0), ([Diagnostic("error", "broken")], 1)])
def test_exit_status(tmp_path, monkeypatch, diagnostics, status):
    calls = []

    def fake_convert(input_paths, output_dir, **kwargs):
        calls.append((input_paths, output_dir, kwargs))
        return diagnostics

    monkeypatch.setattr(cli, "convert_to_js_facades", fake_convert)
    out = tmp_path / "out"
    assert cli.main([str(tmp_path), "--output-dir", str(out), "--erase-package", "--jobs", "2"]) == status
    ((input_paths, output_dir, kwargs),) = calls
    assert input_paths == [tmp_path]
    assert output_dir == out
    assert kwargs["erase_package"] is True
    assert kwargs["jobs"] == 2
    assert kwargs["clear_output_dir"] is True
    assert kwargs["generics_annotation"] == DEFAULT_GENERICS_ANNOTATION
