"""Typed dataclasses describing the docsite project configuration."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import os
import re
import types
from pathlib import Path

from docsite._constants import DEFAULT_COMPILER_ARGS
from docsite.errors import ConfigError

_STYLE_CHARS = re.compile(r"[_-]")


def normalize_key(name: str) -> str:
    """Return ``name`` folded so case, ``_`` and ``-`` do not matter.

    Examples
    --------
    >>> normalize_key("Parallel_Build")
    'parallelbuild'
    >>> normalize_key("google-analytics") == normalize_key("googleAnalytics")
    True
    """
    return _STYLE_CHARS.sub("", name).lower()


class VariableTable(cabc.MutableMapping[str, str]):
    """String mapping whose keys ignore case and underscore/dash styling.

    The table keeps the spelling used when a key was first bound so that
    iteration reports readable names, while lookups normalize through
    :func:`normalize_key`.

    Examples
    --------
    >>> table = VariableTable({"docRoot": "doc"})
    >>> table["DOC_ROOT"]
    'doc'
    >>> "doc-root" in table
    True
    """

    def __init__(self, initial: cabc.Mapping[str, str] | None = None) -> None:
        self._values: dict[str, tuple[str, str]] = {}
        if initial:
            self.update(initial)

    def __getitem__(self, key: str) -> str:
        return self._values[normalize_key(key)][1]

    def __setitem__(self, key: str, value: str) -> None:
        normalized = normalize_key(key)
        original = self._values.get(normalized, (key, ""))[0]
        self._values[normalized] = (original, value)

    def __delitem__(self, key: str) -> None:
        del self._values[normalize_key(key)]

    def __iter__(self) -> cabc.Iterator[str]:
        return (original for original, _value in self._values.values())

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"VariableTable({dict(self.items())!r})"

    def copy(self) -> VariableTable:
        """Return an independent copy of the table."""
        return VariableTable(dict(self.items()))


@dc.dataclass(frozen=True, slots=True)
class NavEntry:
    """Navigation tab or external link shown on every website page."""

    label: str
    id: str
    target: str


@dc.dataclass(frozen=True, slots=True)
class Quotation:
    """Quote and attribution displayed on a website page."""

    quote: str
    author: str


@dc.dataclass(slots=True)
class ConfigOverrides:
    """Values supplied on the command line that take precedence over the file.

    Attributes
    ----------
    variables : dict[str, str]
        ``--var:name=value`` bindings. They are visible to substitutions in the
        file and are never replaced by a file definition.
    worker_count : int
        ``--parallelBuild:n``; ``0`` leaves the configured value untouched.
    output_dir : Path or None
        ``--output:dir``.
    analytics_id : str or None
        ``--googleAnalytics:id``.
    compiler_args : tuple[str, ...]
        Extra flags forwarded verbatim to the document compiler.
    """

    variables: dict[str, str] = dc.field(default_factory=dict)
    worker_count: int = 0
    output_dir: Path | None = None
    analytics_id: str | None = None
    compiler_args: tuple[str, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class ProjectConfig:
    """A fully resolved project definition produced by the loader.

    Build stages receive this value and never modify it; anything derived at
    build time (for example the ticker markup) lives in the stage itself.
    """

    input_file: Path
    output_dir: Path
    project_name: str
    project_title: str = ""
    authors: str = ""
    logo: str = ""
    ticker: str = ""
    tabs: tuple[NavEntry, ...] = ()
    links: tuple[NavEntry, ...] = ()
    doc_sources: tuple[Path, ...] = ()
    srcdoc_sources: tuple[Path, ...] = ()
    srcdoc2_sources: tuple[Path, ...] = ()
    webdoc_sources: tuple[Path, ...] = ()
    pdf_sources: tuple[Path, ...] = ()
    variables: cabc.Mapping[str, str] = dc.field(default_factory=VariableTable)
    compiler_args: str = DEFAULT_COMPILER_ARGS
    quotations: cabc.Mapping[str, Quotation] = dc.field(default_factory=dict)
    worker_count: int = dc.field(default_factory=lambda: os.cpu_count() or 1)
    analytics_id: str | None = None
    source_root: Path | None = None

    def __post_init__(self) -> None:
        if not self.project_name:
            msg = "project name must not be empty"
            raise ConfigError(msg, path=self.input_file)
        if not str(self.output_dir):
            msg = "output directory must not be empty"
            raise ConfigError(msg, path=self.input_file)
        # Frozen fields still hold mutable tables; expose read-only views.
        object.__setattr__(
            self, "variables", types.MappingProxyType(VariableTable(self.variables))
        )
        quotations = {
            normalize_key(page): quote for page, quote in self.quotations.items()
        }
        object.__setattr__(self, "quotations", types.MappingProxyType(quotations))

    def quotation_for(self, page: str) -> Quotation | None:
        """Return the quotation configured for ``page``, if any."""
        return self.quotations.get(normalize_key(page))


__all__ = [
    "ConfigOverrides",
    "NavEntry",
    "ProjectConfig",
    "Quotation",
    "VariableTable",
    "normalize_key",
]
