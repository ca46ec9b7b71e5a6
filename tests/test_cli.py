"""Tests for the ``docsite`` command-line entrypoint.

The build pipeline is replaced with ``_FakePipeline`` so these tests only
check argument handling, override plumbing, output and exit statuses.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest

from docsite import cli
from docsite.pipeline import BuildAction

if typ.TYPE_CHECKING:
    from docsite.config import ProjectConfig
    from docsite.pipeline import BuildLayout


@pytest.fixture
def ini_file(tmp_path: Path) -> Path:
    path = tmp_path / "website.ini"
    path.write_text(
        "[project]\nname = Nim\n[var]\nroot = file\n[documentation]\nparallelbuild = 1\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> dict[str, object]:
    """Replace the pipeline and return the values it was built with."""
    state: dict[str, object] = {}

    class _FakePipeline:
        def __init__(self, config: ProjectConfig, *, layout: BuildLayout) -> None:
            state["config"] = config
            state["layout"] = layout

        def run(self, action: BuildAction) -> list[Path]:
            state["action"] = action
            config = typ.cast("ProjectConfig", state["config"])
            return [config.output_dir / "upload" / "index.html"]

    monkeypatch.setattr("docsite.cli.BuildPipeline", _FakePipeline)
    return state


def test_prepare_argv_rewrites_compiler_style_options() -> None:
    argv = [
        "--parallelBuild:2",
        "--googleAnalytics",
        "UA-1",
        "--var:root=/opt/nim",
        "-o:out",
        "--Website",
        "web/site",
        "-d:release",
        "--opt:speed",
    ]
    assert cli._prepare_argv(argv) == [
        "--parallel-build=2",
        "--google-analytics",
        "UA-1",
        "--var=root=/opt/nim",
        "-o",
        "out",
        "--website",
        "--",
        "web/site",
        "-d:release",
        "--opt:speed",
    ]


def test_prepare_argv_keeps_explicit_separator() -> None:
    assert cli._prepare_argv(["--pdf", "--", "-odd.ini"]) == ["--pdf", "--", "-odd.ini"]


@pytest.mark.parametrize(
    ("flags", "expected"),
    [
        ({}, BuildAction.ALL),
        ({"website": True}, BuildAction.WEBSITE),
        ({"website": True, "json2": True}, BuildAction.JSON2),
        ({"json2": True, "pdf": True}, BuildAction.PDF),
    ],
)
def test_select_action_precedence(flags: dict[str, bool], expected: BuildAction) -> None:
    options = {"website": False, "pdf": False, "json2": False, **flags}
    assert cli._select_action(**options) == expected


def test_main_applies_overrides(
    ini_file: Path,
    tmp_path: Path,
    captured: dict[str, object],
    capsys: pytest.CaptureFixture[str],
) -> None:
    out_dir = tmp_path / "out"
    status = cli.main(
        [
            "--parallelBuild:3",
            "--var:root=/opt/nim",
            "--website",
            f"-o:{out_dir}",
            str(ini_file.with_suffix("")),
            "-d:release",
        ]
    )
    assert status == 0
    config = typ.cast("ProjectConfig", captured["config"])
    assert config.worker_count == 3, "Expected the command line to win"
    assert config.variables["root"] == "/opt/nim"
    assert config.output_dir == out_dir
    assert config.compiler_args.endswith(" -d:release")
    assert captured["action"] == BuildAction.WEBSITE
    assert f"wrote {out_dir / 'upload' / 'index.html'}" in capsys.readouterr().out


def test_main_defaults_to_full_build(
    ini_file: Path, captured: dict[str, object]
) -> None:
    assert cli.main([str(ini_file)]) == 0
    assert captured["action"] == BuildAction.ALL
    config = typ.cast("ProjectConfig", captured["config"])
    assert config.worker_count == 1
    assert config.output_dir == ini_file.parent


def test_main_reports_errors(
    tmp_path: Path, captured: dict[str, object], capsys: pytest.CaptureFixture[str]
) -> None:
    status = cli.main([str(tmp_path / "absent.ini")])
    assert status == 1
    err = capsys.readouterr().err
    assert err.startswith("[Error] cannot open:"), err
    assert "absent.ini" in err
    assert "config" not in captured


def test_main_rejects_malformed_variable(
    ini_file: Path, captured: dict[str, object], capsys: pytest.CaptureFixture[str]
) -> None:
    assert cli.main(["--var", "root", str(ini_file)]) == 1
    assert "expected name=value" in capsys.readouterr().err
