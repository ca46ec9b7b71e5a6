"""Derive the Atom news feed from a directory of dated articles.

Articles live in ``web/news`` as reStructuredText files named
``YYYY_MM_DD.rst``; the first line of each file is its title. This module
scans that directory into :class:`RssItem` records, derives deterministic
entry ids and deep-link anchors from the titles, and renders ``news.xml``
through the ``news_feed.jinja`` template.

Typical usage mirrors the website build:

>>> from pathlib import Path
>>> from docsite.news import build_news_feed
>>> build_news_feed(Path("web/news"), Path("web/upload"))  # doctest: +SKIP
PosixPath('web/upload/news.xml')
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import hashlib
import logging
import string
import typing as typ
import uuid
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from ._constants import (
    FEED_AUTHOR,
    FEED_TITLE,
    NEWS_EXTENSION,
    NEWS_FILENAME_PATTERN,
    RSS_FILENAME,
    RSS_NEWS_URL,
    RSS_URL,
    SITE_URL,
)
from .errors import ResourceError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = logging.getLogger(__name__)

ANCHOR_CHARACTERS = frozenset(string.ascii_letters + string.digits)
# Prefixed to every anchor before mangling; published links depend on it.
ANCHOR_PLACEHOLDER = "Z"


@dc.dataclass(frozen=True, slots=True)
class RssItem:
    """One dated article destined for the feed.

    Attributes
    ----------
    year, month, day : str
        Zero-padded date components taken from the file name.
    title : str
        First line of the article, verbatim.
    url : str
        Public URL of the rendered article page.
    content : str
        Full article source.
    """

    year: str
    month: str
    day: str
    title: str
    url: str
    content: str

    @property
    def date(self) -> dt.date:
        """Return the article date."""
        return dt.date(int(self.year), int(self.month), int(self.day))

    @property
    def entry_id(self) -> str:
        """Return the deterministic feed id for this article."""
        return compute_id(self.title)

    @property
    def updated(self) -> str:
        """Return the Atom timestamp for the article date."""
        return updated_date(self.year, self.month, self.day)

    @property
    def anchor(self) -> str:
        """Return the news page deep link for this article."""
        return news_anchor(self.title)


def scan_news(news_dir: Path, *, base_url: str = SITE_URL) -> list[RssItem]:
    """Collect dated articles from ``news_dir``, newest first.

    Parameters
    ----------
    news_dir : Path
        Directory whose immediate children are scanned; subdirectories are
        ignored.
    base_url : str, optional
        Site root used to build each item's ``url``.

    Returns
    -------
    list[RssItem]
        Items sorted by the date parsed from their file names, newest first.

    Raises
    ------
    ResourceError
        If ``news_dir`` does not exist or cannot be listed.

    Notes
    -----
    Files with another extension are skipped with an info message. Article
    files whose name does not start with ``YYYY_MM_DD`` are left out of the
    feed without a message because they may still be ordinary pages.
    """
    try:
        entries = sorted(news_dir.iterdir())
    except OSError as exc:
        msg = f"cannot read news directory: {news_dir}"
        raise ResourceError(msg) from exc

    items: list[tuple[dt.date, str, RssItem]] = []
    for path in entries:
        if not path.is_file():
            continue
        if path.suffix != NEWS_EXTENSION:
            logger.info("Skipping file in news directory: %s", path)
            continue
        match = NEWS_FILENAME_PATTERN.match(path.stem)
        if match is None:
            continue
        year, month, day = match.groups()
        try:
            date = dt.date(int(year), int(month), int(day))
        except ValueError:
            logger.info("Skipping news file with an invalid date: %s", path)
            continue
        content = read_article(path)
        item = RssItem(
            year=year,
            month=month,
            day=day,
            title=first_line(content),
            url=f"{base_url}news/{path.stem}.html",
            content=content,
        )
        items.append((date, path.name, item))
    items.sort(key=lambda entry: entry[:2], reverse=True)
    return [item for _date, _name, item in items]


def read_article(path: Path) -> str:
    """Return the article source, replacing bytes that are not valid UTF-8."""
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        msg = f"cannot open: {path}"
        raise ResourceError(msg) from exc


def first_line(content: str) -> str:
    """Return the article title: the first line of ``content``, verbatim."""
    return content.splitlines()[0] if content else ""


def compute_id(title: str) -> str:
    """Return a ``urn:uuid:`` id derived from the MD5 digest of ``title``.

    Identical titles always map to the same id.

    Examples
    --------
    >>> compute_id("Release 0.7") == compute_id("Release 0.7")
    True
    >>> compute_id("Release 0.7").startswith("urn:uuid:")
    True
    """
    digest = hashlib.md5(title.encode("utf-8"), usedforsecurity=False).hexdigest()
    return uuid.UUID(hex=digest).urn


def news_anchor(title: str, *, news_url: str = RSS_NEWS_URL) -> str:
    """Mangle ``title`` into the anchor used on the news page.

    The title is mangled one UTF-8 byte at a time: ASCII letters are
    lower-cased, digits are kept and every other byte becomes ``-``, so a
    two-byte character yields ``--``. The result keeps the ``Z`` placeholder
    that the mangling loop starts from.

    Examples
    --------
    >>> news_anchor("Hello World")
    'http://nim-lang.org/news.html#Zhello-world'
    >>> news_anchor("Café")
    'http://nim-lang.org/news.html#Zcaf--'
    """
    mangled = "".join(
        chr(byte).lower() if chr(byte) in ANCHOR_CHARACTERS else "-"
        for byte in title.encode("utf-8")
    )
    return f"{news_url}#{ANCHOR_PLACEHOLDER}{mangled}"


def updated_date(year: str | int, month: str | int, day: str | int) -> str:
    """Return an Atom timestamp for midnight UTC on the given day.

    Examples
    --------
    >>> updated_date("2024", "1", "5")
    '2024-01-05T00:00:00Z'
    """
    return f"{year}-{str(month).zfill(2)}-{str(day).zfill(2)}T00:00:00Z"


class FeedRenderer:
    """Render :class:`RssItem` records into an Atom document."""

    def __init__(self, *, templates_dir: Path | None = None) -> None:
        """Initialize the Jinja environment.

        Parameters
        ----------
        templates_dir : Path, optional
            Directory containing ``news_feed.jinja``; defaults to
            ``docsite/templates``.
        """
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(self.templates_dir),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("news_feed.jinja")

    def render(
        self, items: cabc.Sequence[RssItem], *, today: dt.date | None = None
    ) -> str:
        """Return the feed XML for ``items``.

        The feed-level ``updated`` element uses ``today`` (the current UTC
        date by default); each entry carries its own article date.
        """
        today = today or dt.datetime.now(dt.UTC).date()
        context = {
            "feed": {
                "title": FEED_TITLE,
                "self_url": RSS_URL,
                "news_url": RSS_NEWS_URL,
                "author": FEED_AUTHOR,
                "updated": updated_date(today.year, today.month, today.day),
            },
            "items": items,
        }
        xml = self.template.render(**context)
        if not xml.endswith("\n"):
            xml += "\n"
        return xml


def render_feed(
    items: cabc.Sequence[RssItem], *, today: dt.date | None = None
) -> str:
    """Render ``items`` with the packaged feed template."""
    return FeedRenderer().render(items, today=today)


def write_feed(
    path: Path, items: cabc.Sequence[RssItem], *, today: dt.date | None = None
) -> Path:
    """Render ``items`` and write the feed to ``path``.

    Raises
    ------
    ResourceError
        If ``path`` cannot be opened for writing.
    """
    xml = render_feed(items, today=today)
    try:
        with path.open("w", encoding="utf-8") as handle:
            handle.write(xml)
    except OSError as exc:
        msg = f"Could not write to {path} for rss generation"
        raise ResourceError(msg) from exc
    return path


def build_news_feed(news_dir: Path, dest_dir: Path) -> Path:
    """Scan ``news_dir`` and write ``news.xml`` into ``dest_dir``."""
    return write_feed(dest_dir / RSS_FILENAME, scan_news(news_dir))


__all__ = [
    "ANCHOR_CHARACTERS",
    "FeedRenderer",
    "RssItem",
    "build_news_feed",
    "compute_id",
    "first_line",
    "news_anchor",
    "read_article",
    "render_feed",
    "scan_news",
    "updated_date",
    "write_feed",
]
