"""Load and validate project INI files for docsite builds.

This subpackage parses the project's ``website.ini`` file, expands variable
references and source patterns, applies command-line overrides, and produces
an immutable :class:`ProjectConfig` that the command builders, the website
pipeline, and the feed generator consume. The primary entry point is
:func:`load_project_config`.

Examples
--------
>>> from pathlib import Path
>>> from docsite.config import ConfigOverrides, load_project_config
>>> overrides = ConfigOverrides(worker_count=4)
>>> config = load_project_config(Path("web/website.ini"), overrides)  # doctest: +SKIP
>>> config.worker_count  # doctest: +SKIP
4
"""

from docsite.errors import ConfigError

from .loader import KNOWN_SECTIONS, load_project_config
from .models import (
    ConfigOverrides,
    NavEntry,
    ProjectConfig,
    Quotation,
    VariableTable,
    normalize_key,
)

__all__ = [
    "KNOWN_SECTIONS",
    "ConfigError",
    "ConfigOverrides",
    "NavEntry",
    "ProjectConfig",
    "Quotation",
    "VariableTable",
    "load_project_config",
    "normalize_key",
]
