"""Website page rendering.

This module wraps compiled page fragments in the site chrome: navigation
tabs, footer links, the per-page quotation, the ticker, and the analytics
snippet. :class:`PageRenderer` loads ``page.jinja`` once and renders any
number of pages from the same :class:`~docsite.config.ProjectConfig`.

>>> from docsite.pages import PageRenderer
>>> renderer = PageRenderer()
>>> html = renderer.render_page(config, page="index", title="Home", content="<p>Hi</p>")  # doctest: +SKIP
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from .errors import ResourceError

if typ.TYPE_CHECKING:
    from .config import NavEntry, ProjectConfig


class PageRenderer:
    """Render complete HTML pages from compiled content fragments."""

    def __init__(self, *, templates_dir: Path | None = None) -> None:
        """Initialize the renderer and Jinja environment.

        Parameters
        ----------
        templates_dir : Path, optional
            Directory containing Jinja templates. Defaults to
            ``docsite/templates`` when not supplied.
        """
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(self.templates_dir),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("page.jinja")

    def render_page(
        self,
        config: ProjectConfig,
        *,
        page: str,
        title: str,
        content: str,
        rss: str = "",
        asset_dir: str = "",
        ticker: str = "",
    ) -> str:
        """Return the full HTML document for one page.

        Parameters
        ----------
        config : ProjectConfig
            Project configuration providing tabs, links, and quotations.
        page : str
            Page identifier (tab target), used to mark the active tab and to
            look up the quotation.
        title : str
            Page title shown in the browser tab.
        content : str
            Already compiled HTML fragment; inserted without escaping.
        rss : str, optional
            Feed file name to advertise, or empty for none.
        asset_dir : str, optional
            Relative prefix from the page to the site root, such as ``"../"``
            for pages in subdirectories.
        ticker : str, optional
            Ticker markup shown above the content.
        """

        def tab_href(tab: NavEntry) -> str:
            if "." in tab.target:
                return tab.target
            return f"{asset_dir}{tab.target}.html"

        html = self.template.render(
            config=config,
            page=page,
            title=title,
            content=content,
            rss=rss,
            asset_dir=asset_dir,
            ticker=ticker,
            quotation=config.quotation_for(page),
            tab_href=tab_href,
        )
        if not html.endswith("\n"):
            html += "\n"
        return html


def write_page(path: Path, html: str) -> Path:
    """Write ``html`` to ``path``, creating parent directories."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")
    except OSError as exc:
        msg = f"cannot write file: {path}"
        raise ResourceError(msg) from exc
    return path


__all__ = ["PageRenderer", "write_page"]
