"""Common literal values used across docsite.

These constants keep URLs, filenames, and compiler defaults centralized so the
loader, command builders, feed generator, and tests can import the same values
without drifting. Intended for internal use within the docsite package.

Examples
--------
>>> from docsite import _constants
>>> _constants.RSS_FILENAME
'news.xml'
>>> bool(_constants.NEWS_FILENAME_PATTERN.match("2024_01_05"))
True
"""

import re

VERSION = "0.7.0"

GIT_REPO_URL = "https://github.com/nim-lang/Nim"
SITE_URL = "http://nim-lang.org/"
RSS_FILENAME = "news.xml"
RSS_URL = f"{SITE_URL}{RSS_FILENAME}"
RSS_NEWS_URL = f"{SITE_URL}news.html"
FEED_TITLE = "Nim website news"
FEED_AUTHOR = "Nim"

NEWS_FILENAME_PATTERN = re.compile(r"(\d{4})_(\d{2})_(\d{2})")
NEWS_EXTENSION = ".rst"

COMPILER_NAME = "nim"
DEFAULT_COMPILER_ARGS = "--hint[Conf]:off --hint[Path]:off --hint[Processing]:off"
TYPESETTER = "pdflatex"

DOC_BASE_DIR = "doc"
DOC_EXTENSION = ".rst"
LIB_BASE_DIR = "lib"
LIB_EXTENSION = ".nim"
INI_EXTENSION = ".ini"

UPLOAD_DIRNAME = "upload"
JSON2_DIRNAME = "json2"
NEWS_DIRNAME = "news"
ASSETS_DIRNAME = "assets"
INDEX_FILENAME = "theindex.html"
DOCGEN_SAMPLE = "docgen_sample.nim"
PACKAGE_LIST_SOURCE = "nimblepkglist.nim"
PACKAGE_LIST_OUTPUT = "nimblepkglist.js"

ACTIVE_SPONSORS = "sponsors.csv"
INACTIVE_SPONSORS = "inactive_sponsors.csv"
SPONSORS_PAGE = "sponsors.html"
