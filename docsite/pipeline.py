"""Sequence the website, documentation, PDF, and JSON build stages.

:class:`BuildPipeline` owns one loaded :class:`~docsite.config.ProjectConfig`
and runs the stages selected by a :class:`BuildAction` strictly one after the
other. Command lines come from :mod:`docsite.commands`, execution goes through
a :class:`~docsite.executor.CommandRunner`, and failures surface as
:class:`~docsite.errors.DocsiteError` subclasses for the CLI to report.

Directory layout
----------------
``web_dir``
    Website sources (``<page>.rst``, ``news/``, ``assets/``, sponsor CSVs);
    defaults to the directory holding the ini file.
``upload_dir``
    Rendered website and documentation, ``<output_dir>/upload``.
``doc_dir``
    Local documentation tree that also receives the PDFs.
``json2_dir``
    JSON documentation, ``<output_dir>/json2``.
``work_dir``
    Directory the typesetter runs in and drops its intermediates into.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import logging
import shutil
import typing as typ
from pathlib import Path

from ._constants import (
    ACTIVE_SPONSORS,
    ASSETS_DIRNAME,
    DOC_BASE_DIR,
    INACTIVE_SPONSORS,
    INDEX_FILENAME,
    JSON2_DIRNAME,
    NEWS_DIRNAME,
    NEWS_EXTENSION,
    PACKAGE_LIST_OUTPUT,
    RSS_FILENAME,
    SPONSORS_PAGE,
    TYPESETTER,
    UPLOAD_DIRNAME,
)
from .commands import (
    PlanMode,
    build_commands,
    build_doc_sample_commands,
    build_index_command,
    build_js_command,
    build_page_command,
    find_compiler,
    json_output_path,
    pdf_jobs,
)
from .errors import ResourceError
from .executor import CommandRunner
from .news import build_news_feed, first_line, read_article
from .pages import PageRenderer, write_page
from .sponsors import read_sponsors, render_sponsors

if typ.TYPE_CHECKING:
    from .config import ProjectConfig

logger = logging.getLogger(__name__)

# Tab targets that advertise the news feed.
_FEED_PAGES = frozenset({"news", "index"})
_PAGE_TITLES = {"question": "FAQ"}


class BuildAction(enum.StrEnum):
    """Top-level build selected on the command line."""

    ALL = "all"
    WEBSITE = "website"
    PDF = "pdf"
    JSON2 = "json2"


@dc.dataclass(frozen=True, slots=True)
class BuildLayout:
    """Resolved directories used by one build."""

    web_dir: Path
    doc_dir: Path
    upload_dir: Path
    json2_dir: Path
    work_dir: Path

    @classmethod
    def from_config(
        cls,
        config: ProjectConfig,
        *,
        web_dir: Path | None = None,
        doc_dir: Path | None = None,
        work_dir: Path | None = None,
    ) -> BuildLayout:
        """Derive the layout from ``config``, honouring explicit overrides."""
        root = config.source_root or Path()
        return cls(
            web_dir=web_dir or config.input_file.parent,
            doc_dir=doc_dir or root / DOC_BASE_DIR,
            upload_dir=config.output_dir / UPLOAD_DIRNAME,
            json2_dir=config.output_dir / JSON2_DIRNAME,
            work_dir=work_dir or Path.cwd(),
        )


class BuildPipeline:
    """Run build stages for a single project configuration."""

    def __init__(
        self,
        config: ProjectConfig,
        *,
        runner: CommandRunner | None = None,
        layout: BuildLayout | None = None,
        compiler: str | None = None,
        renderer: PageRenderer | None = None,
    ) -> None:
        """Initialize the pipeline.

        Parameters
        ----------
        config : ProjectConfig
            Loaded configuration; never modified by any stage.
        runner : CommandRunner, optional
            Execution engine; defaults to one sized by ``config.worker_count``.
        layout : BuildLayout, optional
            Directory layout; defaults to :meth:`BuildLayout.from_config`.
        compiler : str, optional
            Document compiler executable; located with
            :func:`~docsite.commands.find_compiler` when omitted.
        renderer : PageRenderer, optional
            Page renderer shared by every website page.
        """
        self.config = config
        self.runner = runner or CommandRunner(config.worker_count)
        self.layout = layout or BuildLayout.from_config(config)
        self.compiler = compiler or find_compiler(config.source_root)
        self.renderer = renderer or PageRenderer()

    def run(self, action: BuildAction = BuildAction.ALL) -> list[Path]:
        """Run the stages for ``action`` and return the artifacts written."""
        match action:
            case BuildAction.WEBSITE:
                return self.build_website()
            case BuildAction.PDF:
                return self.build_pdf(self.layout.doc_dir)
            case BuildAction.JSON2:
                return self.build_json2()
            case BuildAction.ALL:
                return self.build_all()
        msg = f"unsupported build action: {action!r}"  # pragma: no cover
        raise ValueError(msg)

    def build_all(self) -> list[Path]:
        """Build the website, then the uploaded and local documentation."""
        upload = self.layout.upload_dir
        written = self.build_website()
        written.append(self.build_js(upload))
        self.build_additional_docs(upload)
        self.build_doc_samples(upload)
        written.append(self.build_docs(upload))
        self.build_doc_samples(self.layout.doc_dir)
        written.append(self.build_docs(self.layout.doc_dir))
        return written

    # Website -----------------------------------------------------------

    def build_website(self) -> list[Path]:
        """Render tab pages, the feed, the sponsors page, and news pages."""
        layout = self.layout
        layout.upload_dir.mkdir(parents=True, exist_ok=True)
        ticker = self._read_ticker()

        written: list[Path] = []
        for tab in self.config.tabs:
            page = tab.target
            if "." in page:
                continue
            written.append(
                self.build_page(
                    page,
                    title=_PAGE_TITLES.get(page, page),
                    rss=RSS_FILENAME if page in _FEED_PAGES else "",
                    ticker=ticker,
                )
            )
        self._copy_assets()
        written.append(
            build_news_feed(layout.web_dir / NEWS_DIRNAME, layout.upload_dir)
        )
        written.append(self.build_sponsors(layout.upload_dir, ticker=ticker))
        written.extend(self.build_news_pages(ticker=ticker))
        return written

    def build_page(
        self,
        page: str,
        *,
        title: str,
        rss: str = "",
        asset_dir: str = "",
        ticker: str = "",
    ) -> Path:
        """Compile ``<web_dir>/<page>.rst`` and write ``<upload_dir>/<page>.html``.

        The compiler writes an intermediate ``<page>.temp`` fragment next to
        the source; it is wrapped in the page template and then removed.

        Raises
        ------
        JobFailure
            If the compiler exits with a non-zero status.
        ResourceError
            If the fragment cannot be read or the page cannot be written.
        """
        command = build_page_command(
            self.config, page, self.layout.web_dir, compiler=self.compiler
        )
        self.runner.run_serial([command]).raise_for_status()

        temp = self.layout.web_dir / f"{page}.temp"
        try:
            content = temp.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            msg = f"cannot open: {temp}"
            raise ResourceError(msg) from exc
        html = self.renderer.render_page(
            self.config,
            page=page,
            title=title,
            content=content,
            rss=rss,
            asset_dir=asset_dir,
            ticker=ticker,
        )
        path = write_page(self.layout.upload_dir / f"{page}.html", html)
        temp.unlink(missing_ok=True)
        return path

    def build_news_pages(self, *, ticker: str = "") -> list[Path]:
        """Render every article in ``<web_dir>/news`` one level below the root."""
        news_dir = self.layout.web_dir / NEWS_DIRNAME
        try:
            entries = sorted(news_dir.iterdir())
        except OSError as exc:
            msg = f"cannot read news directory: {news_dir}"
            raise ResourceError(msg) from exc

        written: list[Path] = []
        for path in entries:
            if not path.is_file():
                continue
            if path.suffix != NEWS_EXTENSION:
                logger.info("Skipping file in news directory: %s", path)
                continue
            title = first_line(read_article(path))
            written.append(
                self.build_page(
                    f"{NEWS_DIRNAME}/{path.stem}",
                    title=title,
                    asset_dir="../",
                    ticker=ticker,
                )
            )
        return written

    def build_sponsors(self, dest: Path, *, ticker: str = "") -> Path:
        """Write ``sponsors.html`` from the active and inactive sponsor lists."""
        web_dir = self.layout.web_dir
        content = render_sponsors(
            read_sponsors(web_dir / ACTIVE_SPONSORS),
            read_sponsors(web_dir / INACTIVE_SPONSORS),
        )
        html = self.renderer.render_page(
            self.config,
            page="",
            title="Our Sponsors",
            content=content,
            ticker=ticker,
        )
        return write_page(dest / SPONSORS_PAGE, html)

    def _read_ticker(self) -> str:
        if not self.config.ticker:
            return ""
        path = self.layout.web_dir / self.config.ticker
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            msg = f"cannot open: {path}"
            raise ResourceError(msg) from exc

    def _copy_assets(self) -> None:
        source = self.layout.web_dir / ASSETS_DIRNAME
        if not source.is_dir():
            logger.warning("No assets directory found at %s", source)
            return
        shutil.copytree(
            source, self.layout.upload_dir / ASSETS_DIRNAME, dirs_exist_ok=True
        )

    # Documentation -----------------------------------------------------

    def build_docs(self, dest: Path) -> Path:
        """Render the indexed documentation into ``dest`` and build its index.

        The per-file batch may run concurrently; the index command runs only
        after the whole batch has succeeded.
        """
        dest.mkdir(parents=True, exist_ok=True)
        commands = build_commands(
            self.config, dest, PlanMode.DOCS, compiler=self.compiler
        )
        self.runner.run(commands).raise_for_status()
        index = build_index_command(dest, compiler=self.compiler)
        self.runner.run_serial([index]).raise_for_status()
        return dest / INDEX_FILENAME

    def build_additional_docs(self, dest: Path) -> None:
        """Render the ``webdoc`` sources into ``dest`` without an index."""
        dest.mkdir(parents=True, exist_ok=True)
        commands = build_commands(
            self.config, dest, PlanMode.WEBDOCS, compiler=self.compiler
        )
        self.runner.run(commands).raise_for_status()

    def build_doc_samples(self, dest: Path) -> None:
        """Render the docgen sample with both documentation generators."""
        dest.mkdir(parents=True, exist_ok=True)
        commands = build_doc_sample_commands(self.config, dest, compiler=self.compiler)
        self.runner.run_serial(commands).raise_for_status()

    def build_js(self, dest: Path) -> Path:
        """Compile the package list script into ``dest``."""
        dest.mkdir(parents=True, exist_ok=True)
        command = build_js_command(dest, self.layout.web_dir, compiler=self.compiler)
        self.runner.run_serial([command]).raise_for_status()
        return dest / PACKAGE_LIST_OUTPUT

    def build_pdf(self, dest: Path) -> list[Path]:
        """Typeset every ``pdf`` source and move the PDFs into ``dest``.

        Skipped with a warning when the typesetter is not installed. Each
        job's commands run in order; intermediates are removed afterwards.
        """
        if shutil.which(TYPESETTER) is None:
            logger.warning("%s not found; no PDF documentation generated", TYPESETTER)
            return []

        dest.mkdir(parents=True, exist_ok=True)
        work_dir = self.layout.work_dir
        written: list[Path] = []
        for job in pdf_jobs(self.config, compiler=self.compiler):
            self.runner.run_serial(job.commands).raise_for_status()
            target = dest / job.pdf_name
            target.unlink(missing_ok=True)
            try:
                shutil.move(work_dir / job.pdf_name, target)
            except OSError as exc:
                msg = f"cannot move {work_dir / job.pdf_name} to {target}"
                raise ResourceError(msg) from exc
            for leftover in job.intermediates:
                (work_dir / leftover).unlink(missing_ok=True)
            written.append(target)
        return written

    def build_json2(self) -> list[Path]:
        """Emit JSON documentation for the ``srcdoc2`` sources."""
        dest = self.layout.json2_dir
        outputs = [
            dest / json_output_path(self.config, source)
            for source in self.config.srcdoc2_sources
        ]
        for output in outputs:
            output.parent.mkdir(parents=True, exist_ok=True)
        commands = build_commands(
            self.config, dest, PlanMode.JSON2, compiler=self.compiler
        )
        self.runner.run(commands).raise_for_status()
        return outputs


__all__ = ["BuildAction", "BuildLayout", "BuildPipeline"]
