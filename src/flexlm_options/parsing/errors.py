"""Fatal parse failures for license and options files."""

from __future__ import annotations


class ParseError(Exception):
    """A file was rejected; ``message`` is the user-facing explanation.

    ``line`` is the 1-based physical line (after continuation joining) that
    triggered the rejection, or ``None`` for whole-file checks.
    """

    message: str
    line: int | None

    def __init__(self, message: str, *, line: int | None = None) -> None:
        self.message = message
        self.line = line
        location = f"line {line}: " if line is not None else ""
        super().__init__(f"{location}{message}")


class LicenseFileError(ParseError):
    """The license file cannot be used with an options file."""


class OptionsFileError(ParseError):
    """The options file is malformed or references something invalid."""


__all__ = ["LicenseFileError", "OptionsFileError", "ParseError"]
