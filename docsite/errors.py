"""Exception hierarchy shared by the docsite build stages.

Every stage raises one of these instead of terminating the process so the CLI
can decide how failures are reported and which exit status to use.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class DocsiteError(Exception):
    """Base class for all user-visible build failures."""


class ConfigError(DocsiteError, ValueError):
    """Raised when the project configuration is malformed or unreadable.

    Parameters
    ----------
    message : str
        Description of the problem.
    path : Path, optional
        Configuration file the problem was found in.
    line : int, optional
        One-based line number within ``path``.
    """

    def __init__(
        self, message: str, *, path: Path | None = None, line: int | None = None
    ) -> None:
        self.message = message
        self.path = path
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        if self.path is None:
            return self.message
        if self.line is None:
            return f"{self.path}: {self.message}"
        return f"{self.path}({self.line}): {self.message}"


class JobFailure(DocsiteError, RuntimeError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, command: str, returncode: int, output: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.output = output
        super().__init__(
            f"external program failed (exit status {returncode}): {command}"
        )


class ResourceError(DocsiteError, RuntimeError):
    """Raised when a required file or directory cannot be read or written."""


__all__ = ["ConfigError", "DocsiteError", "JobFailure", "ResourceError"]
