"""Unit tests for the compiler command plan builders."""

from __future__ import annotations

import os
import shlex
from pathlib import Path

import pytest

from docsite._constants import DEFAULT_COMPILER_ARGS, GIT_REPO_URL
from docsite.commands import (
    PlanMode,
    build_commands,
    build_doc_sample_commands,
    build_index_command,
    build_js_command,
    build_page_command,
    find_compiler,
    pdf_jobs,
)
from docsite.config import ProjectConfig

DEST = Path("web/upload")


@pytest.fixture
def config() -> ProjectConfig:
    """Return a configuration with one source of every kind."""
    return ProjectConfig(
        input_file=Path("web/website.ini"),
        output_dir=Path("web"),
        project_name="Nim",
        doc_sources=(Path("doc/tut1.rst"),),
        srcdoc_sources=(Path("lib/system.nim"),),
        srcdoc2_sources=(Path("lib/pure/os.nim"),),
        webdoc_sources=(Path("lib/wrappers/sdl.nim"),),
        pdf_sources=(Path("doc/manual.rst"),),
    )


def test_docs_plan_lists_every_indexed_source(config: ProjectConfig) -> None:
    commands = build_commands(config, DEST, PlanMode.DOCS)
    assert commands == [
        f"nim rst2html {DEFAULT_COMPILER_ARGS} --git.url:{GIT_REPO_URL} "
        "-o:web/upload/tut1.html --index:on doc/tut1.rst",
        f"nim doc {DEFAULT_COMPILER_ARGS} --git.url:{GIT_REPO_URL} "
        "-o:web/upload/system.html --index:on lib/system.nim",
        f"nim doc2 {DEFAULT_COMPILER_ARGS} --git.url:{GIT_REPO_URL} "
        "-o:web/upload/os.html --index:on lib/pure/os.nim",
    ]


def test_plan_is_deterministic(config: ProjectConfig) -> None:
    for mode in PlanMode:
        first = build_commands(config, DEST, mode)
        assert first == build_commands(config, DEST, mode), (
            f"Expected identical plans for {mode}"
        )


def test_webdocs_plan_has_no_index(config: ProjectConfig) -> None:
    (command,) = build_commands(config, DEST, PlanMode.WEBDOCS)
    assert command.startswith("nim doc2 ")
    assert "--index:on" not in command
    assert command.endswith("-o:web/upload/sdl.html lib/wrappers/sdl.nim")


def test_json2_plan_mirrors_source_tree(config: ProjectConfig) -> None:
    (command,) = build_commands(config, Path("web/json2"), PlanMode.JSON2)
    assert command.startswith("nim jsondoc2 ")
    assert "-o:web/json2/lib/pure/os.json --index:on lib/pure/os.nim" in command


def test_index_command_targets_destination() -> None:
    assert build_index_command(DEST) == (
        "nim buildIndex -o:web/upload/theindex.html web/upload"
    )


def test_pdf_job_typesets_twice(config: ProjectConfig) -> None:
    (job,) = pdf_jobs(config)
    assert job.commands == (
        f"nim rst2tex {DEFAULT_COMPILER_ARGS} doc/manual.rst",
        "pdflatex doc/manual.tex",
        "pdflatex doc/manual.tex",
    )
    assert job.pdf_name == "manual.pdf"
    assert job.intermediates == (
        Path("manual.aux"),
        Path("manual.toc"),
        Path("manual.log"),
        Path("manual.out"),
        Path("doc/manual.tex"),
    )
    assert build_commands(config, DEST, PlanMode.PDF) == list(job.commands)


def test_page_command_compiles_fragment(config: ProjectConfig) -> None:
    assert build_page_command(config, "news/2024_01_05", Path("web")) == (
        f"nim rst2html --compileonly {DEFAULT_COMPILER_ARGS} "
        "-o:web/news/2024_01_05.temp web/news/2024_01_05.rst"
    )


def test_doc_samples_and_js(config: ProjectConfig) -> None:
    assert build_doc_sample_commands(config, Path("doc")) == [
        f"nim doc {DEFAULT_COMPILER_ARGS} -o:doc/docgen_sample.html "
        "doc/docgen_sample.nim",
        f"nim doc2 {DEFAULT_COMPILER_ARGS} -o:doc/docgen_sample2.html "
        "doc/docgen_sample.nim",
    ]
    assert build_js_command(DEST, Path("web")) == (
        "nim js -d:release --out:web/upload/nimblepkglist.js web/nimblepkglist.nim"
    )


def test_paths_with_spaces_survive_splitting(config: ProjectConfig) -> None:
    dest = Path("my docs")
    (first, *_rest) = build_commands(config, dest, PlanMode.DOCS)
    assert "-o:my docs/tut1.html" in shlex.split(first)


def test_compiler_path_is_quoted(config: ProjectConfig) -> None:
    command = build_index_command(DEST, compiler="/opt/nim tools/bin/nim")
    assert shlex.split(command)[0] == "/opt/nim tools/bin/nim"


@pytest.mark.skipif(os.name == "nt", reason="checks the POSIX executable name")
def test_find_compiler_prefers_local_binary(tmp_path: Path) -> None:
    local = tmp_path / "bin" / "nim"
    local.parent.mkdir()
    local.write_text("", encoding="utf-8")
    assert find_compiler(tmp_path) == str(local)


def test_find_compiler_falls_back_to_name(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("docsite.commands.shutil.which", lambda _name: None)
    assert find_compiler(tmp_path) in {"nim", "nim.exe"}
