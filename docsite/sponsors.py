"""Read sponsor CSV files and render the sponsors page body."""

from __future__ import annotations

import csv
import dataclasses as dc
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from .errors import ResourceError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

SPONSOR_COLUMNS = ("logo", "name", "url", "this_month", "all_time", "since", "level")


@dc.dataclass(frozen=True, slots=True)
class Sponsor:
    """One row of a sponsors CSV file."""

    logo: str
    name: str
    url: str
    this_month: int
    all_time: int
    since: str
    level: int


def read_sponsors(path: Path) -> list[Sponsor]:
    """Read sponsors from ``path``, skipping the header row.

    Raises
    ------
    ResourceError
        If the file cannot be opened or a row has too few columns or a
        non-numeric amount or level.
    """
    try:
        with path.open(newline="", encoding="utf-8") as handle:
            rows = list(csv.reader(handle))
    except OSError as exc:
        msg = f"Cannot open sponsors file: {path}"
        raise ResourceError(msg) from exc

    sponsors: list[Sponsor] = []
    for lineno, row in enumerate(rows[1:], start=2):
        if not row:
            continue
        if len(row) < len(SPONSOR_COLUMNS):
            msg = f"{path}({lineno}): expected {len(SPONSOR_COLUMNS)} columns"
            raise ResourceError(msg)
        logo, name, url, this_month, all_time, since, level = row[: len(SPONSOR_COLUMNS)]
        try:
            sponsors.append(
                Sponsor(
                    logo=logo,
                    name=name,
                    url=url,
                    this_month=int(this_month),
                    all_time=int(all_time),
                    since=since,
                    level=int(level),
                )
            )
        except ValueError as exc:
            msg = f"{path}({lineno}): {exc}"
            raise ResourceError(msg) from exc
    return sponsors


class SponsorsRenderer:
    """Render the sponsors listing fragment."""

    def __init__(self, *, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(self.templates_dir),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("sponsors.jinja")

    def render(
        self, active: cabc.Sequence[Sponsor], inactive: cabc.Sequence[Sponsor]
    ) -> str:
        """Return the HTML fragment; active sponsors sorted by lifetime amount."""
        ordered = sorted(active, key=lambda sponsor: sponsor.all_time, reverse=True)
        return self.template.render(active=ordered, inactive=list(inactive))


def render_sponsors(
    active: cabc.Sequence[Sponsor],
    inactive: cabc.Sequence[Sponsor],
    *,
    templates_dir: Path | None = None,
) -> str:
    """Render the sponsors fragment with the packaged template."""
    return SponsorsRenderer(templates_dir=templates_dir).render(active, inactive)


__all__ = [
    "SPONSOR_COLUMNS",
    "Sponsor",
    "SponsorsRenderer",
    "read_sponsors",
    "render_sponsors",
]
