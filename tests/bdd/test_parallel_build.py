"""Behaviour tests for how the worker count drives documentation builds."""

from __future__ import annotations

import subprocess
import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from docsite.config import load_project_config
from docsite.errors import JobFailure
from docsite.executor import CommandRunner
from docsite.pipeline import BuildLayout, BuildPipeline

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "parallel_build.feature"
)
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    return {"calls": [], "failing": ""}


@given(parsers.parse("a machine reporting {count:d} processors"))
def given_processors(monkeypatch: pytest.MonkeyPatch, count: int) -> None:
    monkeypatch.setattr("os.cpu_count", lambda: count)


@given(parsers.parse('a project file with "{setting}" and two documents'))
def given_project(
    tmp_path: Path, scenario_state: dict[str, object], setting: str
) -> None:
    doc = tmp_path / "doc"
    doc.mkdir()
    for name in ("tut1.rst", "tut2.rst"):
        (doc / name).write_text("Tutorial\n", encoding="utf-8")
    path = tmp_path / "website.ini"
    path.write_text(
        f"[project]\nname = Nim\n[documentation]\ndoc = tut1;tut2\n{setting}\n",
        encoding="utf-8",
    )
    scenario_state["ini"] = path


@given(parsers.parse('the compiler fails on "{name}"'))
def given_failing_source(scenario_state: dict[str, object], name: str) -> None:
    scenario_state["failing"] = name


@when("I build the documentation")
def when_build_docs(
    tmp_path: Path,
    scenario_state: dict[str, object],
    monkeypatch: pytest.MonkeyPatch,
    mocker: MockerFixture,
) -> None:
    calls: list[str] = scenario_state["calls"]
    failing: str = scenario_state["failing"]

    def fake_run(args: list[str], **_kwargs: object) -> subprocess.CompletedProcess:
        command = " ".join(args)
        calls.append(command)
        returncode = 1 if failing and command.endswith(failing) else 0
        return subprocess.CompletedProcess(args, returncode, stdout="")

    monkeypatch.setattr("docsite.executor.subprocess.run", fake_run)
    config = load_project_config(scenario_state["ini"], root=tmp_path)
    layout = BuildLayout.from_config(config, doc_dir=tmp_path / "doc")
    pipeline = BuildPipeline(config, layout=layout, compiler="nim")
    scenario_state["runner"] = pipeline.runner
    scenario_state["parallel"] = mocker.spy(CommandRunner, "run_parallel")
    try:
        scenario_state["index"] = pipeline.build_docs(tmp_path / "upload")
    except JobFailure as exc:
        scenario_state["error"] = exc


@then("the documentation jobs run serially")
def then_serial(scenario_state: dict[str, object]) -> None:
    runner: CommandRunner = scenario_state["runner"]
    assert runner.worker_count == 1
    scenario_state["parallel"].assert_not_called()
    calls: list[str] = scenario_state["calls"]
    assert [call.split()[-1].rsplit("/", 1)[-1] for call in calls] == [
        "tut1.rst",
        "tut2.rst",
        "upload",
    ]


@then(parsers.parse('the build fails on the command for "{name}"'))
def then_failure(scenario_state: dict[str, object], name: str) -> None:
    error = scenario_state.get("error")
    assert isinstance(error, JobFailure), "Expected the build to fail"
    assert error.command.endswith(name)
    assert "index" not in scenario_state


@then("the batch was replayed serially")
def then_replayed(scenario_state: dict[str, object]) -> None:
    runner: CommandRunner = scenario_state["runner"]
    assert runner.worker_count == 4
    scenario_state["parallel"].assert_called_once()
    calls: list[str] = scenario_state["calls"]
    assert len(calls) == 4, "Expected two concurrent jobs and a serial replay"
    assert calls[2].endswith("tut1.rst")
    assert calls[3].endswith("tut2.rst")
