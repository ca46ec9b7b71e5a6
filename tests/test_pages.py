"""Tests for page chrome rendering and the sponsors listing."""

from __future__ import annotations

from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from docsite.config import NavEntry, ProjectConfig, Quotation
from docsite.errors import ResourceError
from docsite.pages import PageRenderer
from docsite.sponsors import Sponsor, read_sponsors, render_sponsors

SPONSOR_HEADER = "logo,name,url,this_month,all_time,since,level\n"


@pytest.fixture
def config(tmp_path: Path) -> ProjectConfig:
    return ProjectConfig(
        input_file=tmp_path / "website.ini",
        output_dir=tmp_path,
        project_name="Nim",
        project_title="Nim programming language",
        authors="Andreas Rumpf",
        tabs=(
            NavEntry("Home", "", "index"),
            NavEntry("FAQ", "", "question"),
            NavEntry("Forum", "", "http://forum.nim-lang.org"),
        ),
        links=(NavEntry("Source Code", "github", "https://github.com/nim-lang/Nim"),),
        quotations={"index": Quotation("Efficient and expressive.", "A user")},
        analytics_id="UA-1",
    )


def test_page_marks_active_tab_and_quotation(config: ProjectConfig) -> None:
    html = PageRenderer().render_page(
        config,
        page="index",
        title="index",
        content="<p id='body'>Welcome</p>",
        rss="news.xml",
        ticker="<em>New release</em>",
    )
    soup = BeautifulSoup(html, "html.parser")

    assert soup.title is not None
    assert soup.title.get_text() == "Nim programming language: index"
    active = soup.select("a.site-nav__tab--active")
    assert [tab.get_text() for tab in active] == ["Home"]
    hrefs = [tab["href"] for tab in soup.select("nav.site-nav a")]
    assert hrefs == ["index.html", "question.html", "http://forum.nim-lang.org"]
    assert soup.select_one("#body") is not None, "Expected content unescaped"
    assert soup.select_one(".site-ticker em") is not None
    assert soup.select_one("blockquote.site-quote p").get_text() == (
        "Efficient and expressive."
    )
    feed = soup.select_one("link[type='application/atom+xml']")
    assert feed is not None
    assert feed["href"] == "news.xml"
    assert soup.select_one("a#github")["href"] == "https://github.com/nim-lang/Nim"
    assert "UA-1" in html


def test_nested_page_uses_asset_prefix(config: ProjectConfig) -> None:
    html = PageRenderer().render_page(
        config,
        page="news/2024_01_05",
        title="Nim 2.1 released",
        content="<p>News</p>",
        asset_dir="../",
    )
    soup = BeautifulSoup(html, "html.parser")
    hrefs = [tab["href"] for tab in soup.select("nav.site-nav a")]
    assert hrefs[0] == "../index.html"
    assert hrefs[2] == "http://forum.nim-lang.org", "Absolute targets stay as-is"
    assert soup.select_one("blockquote.site-quote") is None
    assert soup.select_one("link[type='application/atom+xml']") is None


def test_read_sponsors_skips_header(tmp_path: Path) -> None:
    path = tmp_path / "sponsors.csv"
    path.write_text(
        SPONSOR_HEADER
        + "logo.png,Acme,https://acme.example,50,400,2017-03-01,2\n"
        + ",Jane,https://jane.example,5,1200,2016-01-01,1\n",
        encoding="utf-8",
    )
    sponsors = read_sponsors(path)
    assert [sponsor.name for sponsor in sponsors] == ["Acme", "Jane"]
    assert sponsors[0] == Sponsor(
        logo="logo.png",
        name="Acme",
        url="https://acme.example",
        this_month=50,
        all_time=400,
        since="2017-03-01",
        level=2,
    )


def test_read_sponsors_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ResourceError, match="Cannot open sponsors file"):
        read_sponsors(tmp_path / "sponsors.csv")


def test_read_sponsors_rejects_bad_amount(tmp_path: Path) -> None:
    path = tmp_path / "sponsors.csv"
    path.write_text(
        SPONSOR_HEADER + "logo.png,Acme,https://acme.example,lots,400,2017,2\n",
        encoding="utf-8",
    )
    with pytest.raises(ResourceError, match=r"sponsors\.csv\(2\)"):
        read_sponsors(path)


def test_render_sponsors_orders_by_lifetime_amount() -> None:
    active = [
        Sponsor("", "Small", "https://small.example", 5, 10, "2020", 1),
        Sponsor("", "Large", "https://large.example", 5, 900, "2015", 3),
    ]
    inactive = [Sponsor("", "Former", "https://former.example", 0, 70, "2014", 1)]
    soup = BeautifulSoup(render_sponsors(active, inactive), "html.parser")
    names = [link.get_text() for link in soup.select(".sponsor__name")]
    assert names == ["Large", "Small"]
    past = soup.select(".sponsors--inactive li")
    assert len(past) == 1
    assert "Former" in past[0].get_text()
