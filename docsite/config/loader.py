"""Load project INI files into an immutable :class:`ProjectConfig`."""

from __future__ import annotations

import dataclasses as dc
import logging
import os
from pathlib import Path

from docsite._constants import (
    DEFAULT_COMPILER_ARGS,
    DOC_BASE_DIR,
    DOC_EXTENSION,
    INI_EXTENSION,
    LIB_BASE_DIR,
    LIB_EXTENSION,
)
from docsite.errors import ConfigError

from .helpers import (
    IniEvent,
    add_file_ext,
    expand_patterns,
    iter_ini_events,
    parse_worker_count,
    split_patterns,
    substitute,
)
from .models import (
    ConfigOverrides,
    NavEntry,
    ProjectConfig,
    Quotation,
    VariableTable,
    normalize_key,
)

logger = logging.getLogger(__name__)

KNOWN_SECTIONS = frozenset(
    {"project", "links", "tabs", "ticker", "documentation", "var", "quotations"}
)
_DOC_SOURCES: dict[str, tuple[str, str, str]] = {
    "doc": ("doc_sources", DOC_BASE_DIR, DOC_EXTENSION),
    "pdf": ("pdf_sources", DOC_BASE_DIR, DOC_EXTENSION),
    "srcdoc": ("srcdoc_sources", LIB_BASE_DIR, LIB_EXTENSION),
    "srcdoc2": ("srcdoc2_sources", LIB_BASE_DIR, LIB_EXTENSION),
    "webdoc": ("webdoc_sources", LIB_BASE_DIR, LIB_EXTENSION),
}
_PROJECT_FIELDS = {
    "name": "project_name",
    "title": "project_title",
    "logo": "logo",
    "authors": "authors",
}


def load_project_config(
    path: Path,
    overrides: ConfigOverrides | None = None,
    *,
    root: Path | None = None,
) -> ProjectConfig:
    """Load the project INI file and apply command-line overrides.

    Parameters
    ----------
    path : Path
        Configuration file; ``.ini`` is appended when ``path`` has no suffix.
    overrides : ConfigOverrides, optional
        Command-line values. Override variables are visible to substitutions
        inside the file and win over file definitions of the same name.
    root : Path, optional
        Directory containing the ``doc`` and ``lib`` source trees. Relative
        source paths (resolved against the working directory) are produced
        when omitted.

    Returns
    -------
    ProjectConfig
        Frozen configuration with non-empty ``project_name`` and
        ``output_dir``.

    Raises
    ------
    ConfigError
        If the file cannot be read, contains a syntax error, an unknown key
        in ``[project]`` or ``[documentation]``, a malformed link or
        quotation, or a non-numeric ``parallelbuild`` value.

    Examples
    --------
    >>> from pathlib import Path
    >>> config = load_project_config(Path("web/website.ini"))  # doctest: +SKIP
    >>> config.project_name  # doctest: +SKIP
    'Nim'
    """
    overrides = overrides or ConfigOverrides()
    input_file = Path(add_file_ext(str(path), INI_EXTENSION))
    try:
        text = input_file.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"cannot open: {input_file}"
        raise ConfigError(msg) from exc

    state = _LoaderState(
        input_file=input_file,
        root=root,
        variables=VariableTable(overrides.variables),
        pinned=frozenset(normalize_key(name) for name in overrides.variables),
    )
    section = ""
    for event in iter_ini_events(text, input_file):
        if event.kind == "section":
            section = normalize_key(event.name)
            if section not in KNOWN_SECTIONS:
                logger.warning("Skipping unknown section: %s", section)
            continue
        state.apply(section, event)

    return state.freeze(overrides)


@dc.dataclass(slots=True)
class _LoaderState:
    """Mutable accumulator used while reading a single configuration file."""

    input_file: Path
    root: Path | None
    variables: VariableTable
    pinned: frozenset[str]
    project: dict[str, str] = dc.field(default_factory=dict)
    ticker: str = ""
    tabs: list[NavEntry] = dc.field(default_factory=list)
    links: list[NavEntry] = dc.field(default_factory=list)
    sources: dict[str, list[Path]] = dc.field(
        default_factory=lambda: {field: [] for field, _base, _ext in _DOC_SOURCES.values()}
    )
    quotations: dict[str, Quotation] = dc.field(default_factory=dict)
    worker_count: int = 0

    def apply(self, section: str, event: IniEvent) -> None:
        """Substitute, bind, and dispatch one key/value pair."""
        value = substitute(event.value, self.variables)
        if normalize_key(event.name) not in self.pinned:
            self.variables[event.name] = value

        match section:
            case "project":
                self._apply_project(event, value)
            case "documentation":
                self._apply_documentation(event, value)
            case "links":
                self._apply_link(event, value)
            case "tabs":
                self.tabs.append(NavEntry(label=event.name, id="", target=value))
            case "ticker":
                self.ticker = value
            case "quotations":
                self._apply_quotation(event, value)
            case _:
                pass

    def _error(self, message: str, event: IniEvent) -> ConfigError:
        return ConfigError(message, path=self.input_file, line=event.line)

    def _apply_project(self, event: IniEvent, value: str) -> None:
        field = _PROJECT_FIELDS.get(normalize_key(event.name))
        if field is None:
            raise self._error(f"unknown variable: {event.name}", event)
        self.project[field] = value

    def _apply_documentation(self, event: IniEvent, value: str) -> None:
        key = normalize_key(event.name)
        if key == "parallelbuild":
            count = parse_worker_count(value, path=self.input_file, line=event.line)
            if count != 0:
                self.worker_count = count
            return
        try:
            field, base_dir, ext = _DOC_SOURCES[key]
        except KeyError:
            raise self._error(f"unknown variable: {event.name}", event) from None
        base = self.root / base_dir if self.root else Path(base_dir)
        self.sources[field].extend(expand_patterns(base, ext, split_patterns(value)))

    def _apply_link(self, event: IniEvent, value: str) -> None:
        parts = value.split(";")
        if len(parts) != 2:
            msg = f"link '{event.name}' must have the form 'url;id'"
            raise self._error(msg, event)
        url, link_id = parts
        self.links.append(
            NavEntry(label=event.name.replace("_", " "), id=link_id, target=url)
        )

    def _apply_quotation(self, event: IniEvent, value: str) -> None:
        parts = value.split("-")
        if len(parts) != 2:
            msg = (
                f"quotation '{event.name}' must have the form 'quote - author' "
                "with exactly one dash"
            )
            raise self._error(msg, event)
        quote, author = (part.strip() for part in parts)
        self.quotations[normalize_key(event.name)] = Quotation(quote, author)

    def freeze(self, overrides: ConfigOverrides) -> ProjectConfig:
        """Apply command-line precedence and return the immutable config."""
        for name, value in overrides.variables.items():
            self.variables[name] = value

        worker_count = overrides.worker_count or self.worker_count
        output_dir = overrides.output_dir or self.input_file.parent
        compiler_args = [DEFAULT_COMPILER_ARGS]
        if overrides.analytics_id:
            compiler_args.append(f"--doc.googleAnalytics:{overrides.analytics_id}")
        compiler_args.extend(overrides.compiler_args)

        return ProjectConfig(
            input_file=self.input_file,
            output_dir=output_dir,
            project_name=self.project.get("project_name") or self.input_file.stem,
            project_title=self.project.get("project_title", ""),
            authors=self.project.get("authors", ""),
            logo=self.project.get("logo", ""),
            ticker=self.ticker,
            tabs=tuple(self.tabs),
            links=tuple(self.links),
            doc_sources=_unique(self.sources["doc_sources"]),
            srcdoc_sources=_unique(self.sources["srcdoc_sources"]),
            srcdoc2_sources=_unique(self.sources["srcdoc2_sources"]),
            webdoc_sources=_unique(self.sources["webdoc_sources"]),
            pdf_sources=_unique(self.sources["pdf_sources"]),
            variables=self.variables.copy(),
            compiler_args=" ".join(arg for arg in compiler_args if arg),
            quotations=dict(self.quotations),
            analytics_id=overrides.analytics_id,
            worker_count=worker_count or os.cpu_count() or 1,
            source_root=self.root,
        )


def _unique(paths: list[Path]) -> tuple[Path, ...]:
    """Drop repeated paths while keeping first-seen order."""
    return tuple(dict.fromkeys(paths))


__all__ = ["KNOWN_SECTIONS", "load_project_config"]
