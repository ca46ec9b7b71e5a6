"""Build the external compiler command lines for a documentation batch.

Every function here is pure: it turns a :class:`~docsite.config.ProjectConfig`
and a destination directory into command strings without touching the
filesystem, so the same inputs always yield the same plan. Paths are quoted
with :func:`shlex.quote` so the execution engine can split the strings back
into argument vectors.

Example
-------
>>> from pathlib import Path
>>> from docsite.config import ProjectConfig
>>> config = ProjectConfig(
...     input_file=Path("web/website.ini"),
...     output_dir=Path("web"),
...     project_name="Nim",
...     doc_sources=(Path("doc/tut1.rst"),),
... )
>>> build_commands(config, Path("web/upload"), PlanMode.DOCS)[0].split()[1]
'rst2html'
"""

from __future__ import annotations

import dataclasses as dc
import enum
import os
import shlex
import shutil
import typing as typ
from pathlib import Path

from ._constants import (
    COMPILER_NAME,
    DOC_BASE_DIR,
    DOCGEN_SAMPLE,
    GIT_REPO_URL,
    INDEX_FILENAME,
    PACKAGE_LIST_OUTPUT,
    PACKAGE_LIST_SOURCE,
    TYPESETTER,
)

if typ.TYPE_CHECKING:
    from .config import ProjectConfig

PDF_INTERMEDIATE_SUFFIXES = (".aux", ".toc", ".log", ".out")


class PlanMode(enum.StrEnum):
    """Kinds of per-source batches the plan builder can enumerate."""

    DOCS = "docs"
    WEBDOCS = "webdocs"
    JSON2 = "json2"
    PDF = "pdf"


@dc.dataclass(frozen=True, slots=True)
class PdfJob:
    """Typesetting commands and artifacts for a single PDF source.

    Attributes
    ----------
    source : Path
        reStructuredText document being typeset.
    commands : tuple[str, ...]
        ``rst2tex`` followed by two typesetter passes; the second pass
        resolves cross-references and must run after the first.
    """

    source: Path
    commands: tuple[str, ...]

    @property
    def tex(self) -> Path:
        """Typesetting source written next to the document."""
        return self.source.with_suffix(".tex")

    @property
    def pdf_name(self) -> str:
        """File name of the PDF the typesetter writes to the working directory."""
        return f"{self.source.stem}.pdf"

    @property
    def intermediates(self) -> tuple[Path, ...]:
        """Temporary files removed once the PDF has been moved into place."""
        stem = Path(self.source.stem)
        return (
            *(stem.with_suffix(suffix) for suffix in PDF_INTERMEDIATE_SUFFIXES),
            self.tex,
        )


def find_compiler(root: Path | None = None) -> str:
    """Locate the document compiler executable.

    Prefers ``<root>/bin/nim``, then the first hit on ``PATH``, and finally
    falls back to the bare executable name.
    """
    exe = COMPILER_NAME + (".exe" if os.name == "nt" else "")
    local = (root or Path()) / "bin" / exe
    if local.is_file():
        return str(local)
    return shutil.which(exe) or exe


def build_commands(
    config: ProjectConfig,
    dest_dir: Path,
    mode: PlanMode,
    *,
    compiler: str = COMPILER_NAME,
) -> list[str]:
    """Enumerate one command per source document for the requested ``mode``.

    Parameters
    ----------
    config : ProjectConfig
        Loaded project configuration holding the expanded source lists.
    dest_dir : Path
        Directory the compiler writes its output into.
    mode : PlanMode
        ``DOCS`` renders ``doc``/``srcdoc``/``srcdoc2`` sources with index
        generation, ``WEBDOCS`` renders ``webdoc`` sources without an index,
        ``JSON2`` emits JSON documentation for ``srcdoc2`` sources, and
        ``PDF`` flattens :func:`pdf_jobs` into a single sequence.
    compiler : str, optional
        Compiler executable; see :func:`find_compiler`.

    Returns
    -------
    list[str]
        Command strings in source order. The batch carries no ordering
        dependencies except for ``PDF``, whose commands must run in sequence.
    """
    match mode:
        case PlanMode.DOCS:
            return [
                *_doc_commands(config, dest_dir, "rst2html", config.doc_sources, compiler),
                *_doc_commands(config, dest_dir, "doc", config.srcdoc_sources, compiler),
                *_doc_commands(config, dest_dir, "doc2", config.srcdoc2_sources, compiler),
            ]
        case PlanMode.WEBDOCS:
            return _doc_commands(
                config, dest_dir, "doc2", config.webdoc_sources, compiler, index=False
            )
        case PlanMode.JSON2:
            return [
                _join(
                    shlex.quote(compiler),
                    "jsondoc2",
                    config.compiler_args,
                    f"--git.url:{GIT_REPO_URL}",
                    _output_flag(dest_dir / json_output_path(config, source)),
                    "--index:on",
                    shlex.quote(str(source)),
                )
                for source in config.srcdoc2_sources
            ]
        case PlanMode.PDF:
            return [
                command
                for job in pdf_jobs(config, compiler=compiler)
                for command in job.commands
            ]
    msg = f"unsupported plan mode: {mode!r}"  # pragma: no cover - exhaustive match
    raise ValueError(msg)


def build_index_command(dest_dir: Path, *, compiler: str = COMPILER_NAME) -> str:
    """Return the index command, which must run after the per-file batch."""
    return _join(
        shlex.quote(compiler),
        "buildIndex",
        _output_flag(dest_dir / INDEX_FILENAME),
        shlex.quote(str(dest_dir)),
    )


def pdf_jobs(config: ProjectConfig, *, compiler: str = COMPILER_NAME) -> list[PdfJob]:
    """Return the typesetting job for every configured PDF source."""
    jobs: list[PdfJob] = []
    for source in config.pdf_sources:
        tex = shlex.quote(str(source.with_suffix(".tex")))
        typeset = _join(TYPESETTER, tex)
        jobs.append(
            PdfJob(
                source=source,
                commands=(
                    _join(
                        shlex.quote(compiler),
                        "rst2tex",
                        config.compiler_args,
                        shlex.quote(str(source)),
                    ),
                    typeset,
                    typeset,
                ),
            )
        )
    return jobs


def build_page_command(
    config: ProjectConfig, page: str, web_dir: Path, *, compiler: str = COMPILER_NAME
) -> str:
    """Return the command compiling ``<web_dir>/<page>.rst`` to a temp fragment."""
    return _join(
        shlex.quote(compiler),
        "rst2html",
        "--compileonly",
        config.compiler_args,
        _output_flag(web_dir / f"{page}.temp"),
        shlex.quote(str(web_dir / f"{page}.rst")),
    )


def build_doc_sample_commands(
    config: ProjectConfig, dest_dir: Path, *, compiler: str = COMPILER_NAME
) -> list[str]:
    """Return the two renders of the docgen sample (``doc`` and ``doc2``)."""
    base = config.source_root / DOC_BASE_DIR if config.source_root else Path(DOC_BASE_DIR)
    source = shlex.quote(str(base / DOCGEN_SAMPLE))
    return [
        _join(
            shlex.quote(compiler),
            verb,
            config.compiler_args,
            _output_flag(dest_dir / output),
            source,
        )
        for verb, output in (
            ("doc", "docgen_sample.html"),
            ("doc2", "docgen_sample2.html"),
        )
    ]


def build_js_command(
    dest_dir: Path, web_dir: Path, *, compiler: str = COMPILER_NAME
) -> str:
    """Return the command compiling the package list script to JavaScript."""
    return _join(
        shlex.quote(compiler),
        "js",
        "-d:release",
        f"--out:{shlex.quote(str(dest_dir / PACKAGE_LIST_OUTPUT))}",
        shlex.quote(str(web_dir / PACKAGE_LIST_SOURCE)),
    )


def json_output_path(config: ProjectConfig, source: Path) -> Path:
    """Return the ``.json`` path for ``source`` relative to the JSON directory."""
    relative = source
    if source.is_absolute() and config.source_root is not None:
        try:
            relative = source.relative_to(config.source_root)
        except ValueError:
            relative = Path(source.name)
    elif source.is_absolute():
        relative = Path(source.name)
    return relative.with_suffix(".json")


def _doc_commands(
    config: ProjectConfig,
    dest_dir: Path,
    verb: str,
    sources: typ.Iterable[Path],
    compiler: str,
    *,
    index: bool = True,
) -> list[str]:
    """Return ``verb`` commands rendering each source to ``<stem>.html``."""
    return [
        _join(
            shlex.quote(compiler),
            verb,
            config.compiler_args,
            f"--git.url:{GIT_REPO_URL}",
            _output_flag(dest_dir / f"{source.stem}.html"),
            "--index:on" if index else "",
            shlex.quote(str(source)),
        )
        for source in sources
    ]


def _output_flag(path: Path) -> str:
    return f"-o:{shlex.quote(str(path))}"


def _join(*parts: str) -> str:
    """Join non-empty parts with single spaces."""
    return " ".join(part.strip() for part in parts if part.strip())


__all__ = [
    "PDF_INTERMEDIATE_SUFFIXES",
    "PdfJob",
    "PlanMode",
    "build_commands",
    "build_doc_sample_commands",
    "build_index_command",
    "build_js_command",
    "build_page_command",
    "find_compiler",
    "json_output_path",
    "pdf_jobs",
]
