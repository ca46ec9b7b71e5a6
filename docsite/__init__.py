"""Build a project website and its generated documentation.

``docsite`` reads a project ini file, plans the document compiler
invocations for each build stage, runs them through a bounded worker pool,
and renders the website pages and Atom news feed with Jinja templates.
"""

from .cli import app, main

__all__ = ["app", "main"]
