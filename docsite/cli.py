"""Cyclopts CLI entrypoint for building the project website and documentation.

The ``docsite`` console script loads a project ini file, applies the
command-line overrides, and runs the selected build. Compiler-style options
are accepted in both spellings, so ``--parallelBuild:4`` and
``--parallel-build 4`` are equivalent. Tokens following the ini file are
forwarded to the document compiler unchanged.

Examples
--------
Build everything with four workers:

>>> from docsite.cli import main
>>> main(["--parallelBuild:4", "web/website"])  # doctest: +SKIP

Only rebuild the website pages, passing a define to the compiler:

>>> main(["--website", "web/website.ini", "-d:release"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from ._constants import VERSION
from .config import ConfigError, ConfigOverrides, load_project_config, normalize_key
from .errors import DocsiteError
from .pipeline import BuildAction, BuildLayout, BuildPipeline

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(levelname)s] %(message)s"

# Long options taking a value; the remaining long options are flags.
_VALUE_OPTIONS = (
    "output",
    "var",
    "parallel-build",
    "google-analytics",
    "web-dir",
    "doc-dir",
)
_FLAG_OPTIONS = ("website", "pdf", "json2", "verbose", "help", "version")
_LONG_OPTIONS = {normalize_key(name): name for name in (*_VALUE_OPTIONS, *_FLAG_OPTIONS)}
_SHORT_VALUE_OPTIONS = frozenset({"-o"})

app = App(
    name="docsite",
    help="Build a project website and its documentation from an ini file.",
    version=VERSION,
    version_flags=["--version", "-v"],
    result_action="return_value",
    config=cyclopts.config.Env("DOCSITE_", command=False),  # type: ignore[unknown-argument]
)


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _parse_variables(values: typ.Iterable[str]) -> dict[str, str]:
    """Split ``name=value`` bindings given with ``--var``."""
    variables: dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name:
            msg = f"invalid --var binding {item!r}; expected name=value"
            raise ConfigError(msg)
        variables[name] = value
    return variables


def _select_action(*, website: bool, pdf: bool, json2: bool) -> BuildAction:
    if pdf:
        return BuildAction.PDF
    if json2:
        return BuildAction.JSON2
    if website:
        return BuildAction.WEBSITE
    return BuildAction.ALL


@app.default
def build(
    ini_file: typ.Annotated[Path, Parameter(help="Project ini file; .ini is optional")],
    *compile_options: typ.Annotated[
        str, Parameter(help="Options forwarded to the document compiler")
    ],
    website: typ.Annotated[
        bool, Parameter(help="Only build the website, not the full documentation")
    ] = False,
    pdf: typ.Annotated[
        bool, Parameter(help="Build the PDF version of the documentation")
    ] = False,
    json2: typ.Annotated[
        bool, Parameter(help="Build the JSON version of the library documentation")
    ] = False,
    output: typ.Annotated[
        Path | None,
        Parameter(
            name=["--output", "-o"],
            help="Output directory (default: same as the ini file)",
        ),
    ] = None,
    var: typ.Annotated[
        list[str] | None,
        Parameter(help="Set a variable as name=value; may be repeated"),
    ] = None,
    parallel_build: typ.Annotated[
        int, Parameter(help="Number of concurrent compiler jobs; 0 keeps the default")
    ] = 0,
    google_analytics: typ.Annotated[
        str | None, Parameter(help="Google Analytics id embedded in every page")
    ] = None,
    web_dir: typ.Annotated[
        Path | None,
        Parameter(help="Website source directory (default: the ini file's folder)"),
    ] = None,
    doc_dir: typ.Annotated[
        Path | None, Parameter(help="Local documentation directory")
    ] = None,
    verbose: typ.Annotated[bool, Parameter(help="Enable debug logging")] = False,
) -> list[Path]:
    """Load the project configuration and run the selected build.

    Parameters
    ----------
    ini_file : Path
        Project configuration file; ``.ini`` is appended when missing.
    *compile_options : str
        Extra flags appended to every compiler invocation.
    website, pdf, json2 : bool, optional
        Select a partial build; with none set the full build runs. When
        several are given, ``pdf`` wins over ``json2``, which wins over
        ``website``.
    output : Path or None, optional
        Output directory overriding the ini file's location.
    var : list[str] or None, optional
        ``name=value`` bindings visible to substitutions in the ini file.
    parallel_build : int, optional
        Worker count; overrides ``parallelbuild`` in the file unless ``0``.
    google_analytics : str or None, optional
        Analytics id forwarded to the compiler and the page template.
    web_dir, doc_dir : Path or None, optional
        Override the website source and local documentation directories.
    verbose : bool, optional
        Log at DEBUG instead of INFO.

    Returns
    -------
    list[Path]
        Artifacts written by the build, also printed as ``wrote <path>``.

    Raises
    ------
    DocsiteError
        Propagated to :func:`main`, which reports it and sets the exit status.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT
    )
    overrides = ConfigOverrides(
        variables=_parse_variables(var or ()),
        worker_count=parallel_build,
        output_dir=output,
        analytics_id=google_analytics,
        compiler_args=tuple(compile_options),
    )
    config = load_project_config(ini_file, overrides)
    action = _select_action(website=website, pdf=pdf, json2=json2)
    logger.debug(
        "Building %s for %s with %d worker(s)",
        action,
        config.project_name,
        config.worker_count,
    )
    layout = BuildLayout.from_config(config, web_dir=web_dir, doc_dir=doc_dir)
    written = BuildPipeline(config, layout=layout).run(action)
    for path in written:
        print(f"wrote {_format_path(path)}")
    return written


def _normalize_long(token: str) -> tuple[str, str | None, bool]:
    """Return ``(option, inline value, takes value)`` for a long option token."""
    body = token[2:]
    cut = min(
        (index for index in (body.find(":"), body.find("=")) if index >= 0),
        default=-1,
    )
    name, value = (body, None) if cut < 0 else (body[:cut], body[cut + 1 :])
    canonical = _LONG_OPTIONS.get(normalize_key(name))
    if canonical is None:
        return token, None, False
    return f"--{canonical}", value, canonical in _VALUE_OPTIONS


def _prepare_argv(argv: typ.Sequence[str]) -> list[str]:
    """Rewrite compiler-style options into tokens Cyclopts understands.

    ``--flag:value`` becomes ``--flag=value``, option names are matched
    ignoring case, ``_`` and ``-``, and everything from the ini file onwards
    is placed after ``--`` so compiler options are not parsed as ours.

    Examples
    --------
    >>> _prepare_argv(["--parallelBuild:2", "-o:out", "web/site", "-d:release"])
    ['--parallel-build=2', '-o', 'out', '--', 'web/site', '-d:release']
    """
    tokens: list[str] = []
    remaining = list(argv)
    while remaining:
        token = remaining.pop(0)
        if token == "--":
            tokens.extend(["--", *remaining])
            return tokens
        if token.startswith("--"):
            option, value, takes_value = _normalize_long(token)
            if value is not None:
                tokens.append(f"{option}={value}")
            else:
                tokens.append(option)
                if takes_value and remaining:
                    tokens.append(remaining.pop(0))
            continue
        if token.startswith("-") and len(token) > 1:
            short, _sep, value = token.partition(":")
            tokens.append(short)
            if short in _SHORT_VALUE_OPTIONS:
                if value:
                    tokens.append(value)
                elif remaining:
                    tokens.append(remaining.pop(0))
            continue
        tokens.extend(["--", token, *remaining])
        return tokens
    return tokens


def main(argv: typ.Sequence[str] | None = None) -> int:
    """Run the ``docsite`` command and return the process exit status.

    Parameters
    ----------
    argv : Sequence[str] or None, optional
        Arguments without the program name; defaults to ``sys.argv[1:]``.

    Returns
    -------
    int
        ``0`` on success, ``1`` when the build failed. Build failures are
        reported on stderr as ``[Error] <message>``.

    Examples
    --------
    >>> main(["web/website.ini"])  # doctest: +SKIP
    0
    """
    tokens = _prepare_argv(sys.argv[1:] if argv is None else argv)
    try:
        app(tokens)
    except DocsiteError as exc:
        print(f"[Error] {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    sys.exit(main())
