"""Utility helpers shared by the docsite configuration loader."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import string
import typing as typ
from pathlib import Path

from docsite.errors import ConfigError

if typ.TYPE_CHECKING:
    from .models import VariableTable

_TRIPLE_QUOTE = '"""'
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\", "'": "'"}


@dc.dataclass(frozen=True, slots=True)
class IniEvent:
    """A section header or key/value pair read from the configuration file."""

    kind: typ.Literal["section", "pair"]
    name: str
    value: str
    line: int


def iter_ini_events(text: str, path: Path) -> cabc.Iterator[IniEvent]:
    """Yield section and key/value events from INI-style ``text``.

    Parameters
    ----------
    text : str
        Raw configuration file content.
    path : Path
        Source path, used only to cite locations in errors.

    Yields
    ------
    IniEvent
        ``section`` events carry the bracketed name; ``pair`` events carry the
        key and the decoded (but not yet substituted) value.

    Raises
    ------
    ConfigError
        On malformed section headers, option-style lines, or unterminated
        string literals.
    """
    lines = text.splitlines()
    index = 0
    while index < len(lines):
        lineno = index + 1
        stripped = lines[index].strip()
        index += 1
        if not stripped or stripped[0] in "#;":
            continue
        if stripped.startswith("["):
            if not stripped.endswith("]"):
                msg = "']' expected"
                raise ConfigError(msg, path=path, line=lineno)
            yield IniEvent("section", stripped[1:-1].strip(), "", lineno)
            continue
        if stripped.startswith("--"):
            msg = "syntax error"
            raise ConfigError(msg, path=path, line=lineno)
        key, raw_value = _split_pair(stripped)
        if not key:
            msg = "key expected"
            raise ConfigError(msg, path=path, line=lineno)
        if raw_value.startswith(_TRIPLE_QUOTE):
            value, index = _read_triple_quoted(raw_value, lines, index, path, lineno)
        else:
            value = _decode_value(raw_value, path, lineno)
        yield IniEvent("pair", key, value, lineno)


def _split_pair(line: str) -> tuple[str, str]:
    """Split ``line`` on the first ``=`` or ``:`` separator."""
    positions = [pos for pos in (line.find("="), line.find(":")) if pos >= 0]
    if not positions:
        return line, ""
    cut = min(positions)
    return line[:cut].strip(), line[cut + 1 :].strip()


def _read_triple_quoted(
    raw_value: str, lines: list[str], index: int, path: Path, lineno: int
) -> tuple[str, int]:
    """Return the body of a ``\"\"\"`` literal and the index after it."""
    body = raw_value[len(_TRIPLE_QUOTE) :]
    parts: list[str] = []
    while True:
        end = body.find(_TRIPLE_QUOTE)
        if end >= 0:
            parts.append(body[:end])
            remainder = body[end + len(_TRIPLE_QUOTE) :].rstrip()
            return "\n".join(parts) + remainder, index
        parts.append(body)
        if index >= len(lines):
            msg = "'\"\"\"' expected"
            raise ConfigError(msg, path=path, line=lineno)
        body = lines[index]
        index += 1


def _decode_value(raw_value: str, path: Path, lineno: int) -> str:
    """Decode a bare, ``"quoted"`` or ``r"raw"`` value."""
    if raw_value.startswith('r"'):
        end = raw_value.rfind('"')
        if end <= 1:
            msg = "'\"' expected"
            raise ConfigError(msg, path=path, line=lineno)
        return raw_value[2:end] + raw_value[end + 1 :].rstrip()
    if not raw_value.startswith('"'):
        return raw_value
    chars: list[str] = []
    pos = 1
    while pos < len(raw_value):
        char = raw_value[pos]
        if char == "\\" and pos + 1 < len(raw_value):
            chars.append(_ESCAPES.get(raw_value[pos + 1], raw_value[pos + 1]))
            pos += 2
            continue
        if char == '"':
            return "".join(chars) + raw_value[pos + 1 :].rstrip()
        chars.append(char)
        pos += 1
    msg = "'\"' expected"
    raise ConfigError(msg, path=path, line=lineno)


def substitute(value: str, variables: VariableTable) -> str:
    """Expand ``$name``/``${name}`` references bound so far in ``variables``.

    Unbound names are left in place rather than resolving to a later
    definition.

    Examples
    --------
    >>> from docsite.config.models import VariableTable
    >>> substitute("${root}/lib and $later", VariableTable({"root": "src"}))
    'src/lib and $later'
    """
    return string.Template(value).safe_substitute(variables)


def split_patterns(value: str) -> list[str]:
    """Split a ``;``-separated pattern list, dropping empty entries."""
    return [segment.strip() for segment in value.split(";") if segment.strip()]


def add_file_ext(name: str, ext: str) -> str:
    """Append ``ext`` to ``name`` unless it already carries an extension.

    Examples
    --------
    >>> add_file_ext("tut1", ".rst")
    'tut1.rst'
    >>> add_file_ext("manual.txt", ".rst")
    'manual.txt'
    """
    if Path(name).suffix:
        return name
    return f"{name}{ext}"


def walk_files(root: Path, ext: str) -> list[Path]:
    """Return files below ``root`` whose extension matches ``ext``.

    Directories are visited in sorted order so expansion is deterministic;
    symlinked directories are not followed.
    """
    found: list[Path] = []
    for entry in sorted(root.iterdir()):
        if entry.is_dir():
            if not entry.is_symlink():
                found.extend(walk_files(entry, ext))
        elif entry.is_file() and entry.suffix.lower() == ext.lower():
            found.append(entry)
    return found


def expand_patterns(base: Path, ext: str, patterns: cabc.Iterable[str]) -> list[Path]:
    """Expand file and directory patterns rooted at ``base``.

    Each pattern contributes ``base/<pattern><ext>`` when that file exists,
    and every matching file below ``base/<pattern>`` when it is a directory.
    """
    found: list[Path] = []
    for pattern in patterns:
        candidate = base / add_file_ext(pattern, ext)
        if candidate.is_file():
            found.append(candidate)
        directory = base / pattern
        if directory.is_dir():
            found.extend(walk_files(directory, ext))
    return found


def parse_worker_count(value: str, *, path: Path | None = None, line: int | None = None) -> int:
    """Parse a ``parallelbuild`` value, raising :class:`ConfigError` if invalid."""
    try:
        return int(value.strip())
    except ValueError as exc:
        msg = f"invalid numeric value for parallelBuild: {value!r}"
        raise ConfigError(msg, path=path, line=line) from exc


__all__ = [
    "IniEvent",
    "add_file_ext",
    "expand_patterns",
    "iter_ini_events",
    "parse_worker_count",
    "split_patterns",
    "substitute",
    "walk_files",
]
