"""Directive ID generation and validation."""

from __future__ import annotations

import re
from typing import Final

DIRECTIVE_ID_PREFIX: Final[str] = "dir"
_PREFIX_SEPARATOR: Final[str] = "-"
_DIRECTIVE_ID_RE: Final[re.Pattern[str]] = re.compile(r"^([a-z][a-z0-9]{0,15})-(\d+)$")


class DirectiveIdFactory:
    """Monotonic ``<prefix>-<n>`` ids scoped to one options document.

    Each document owns its factory, so two documents never share a counter and
    a reset (new document) starts over at ``1``. ``observe`` lets callers that
    insert pre-identified directives keep the counter ahead of them.
    """

    __slots__ = ("_next", "_prefix")

    def __init__(self, prefix: str = DIRECTIVE_ID_PREFIX) -> None:
        _validate_prefix(prefix)
        self._prefix = prefix
        self._next = 1

    @property
    def prefix(self) -> str:
        return self._prefix

    def next_id(self) -> str:
        value = f"{self._prefix}{_PREFIX_SEPARATOR}{self._next}"
        self._next += 1
        return value

    def observe(self, directive_id: str) -> None:
        """Advance past ``directive_id`` when it belongs to this factory's sequence."""

        match = _DIRECTIVE_ID_RE.fullmatch(directive_id)
        if match is None or match.group(1) != self._prefix:
            return
        self._next = max(self._next, int(match.group(2)) + 1)

    def reset(self) -> None:
        self._next = 1


def validate_directive_id(id_str: str, expected_prefix: str = DIRECTIVE_ID_PREFIX) -> None:
    """Validate a ``<prefix>-<n>`` id and raise ``ValueError`` with context on failure."""

    if not isinstance(id_str, str):
        raise ValueError(f"directive id must be a string, got {type(id_str).__name__}")
    match = _DIRECTIVE_ID_RE.fullmatch(id_str)
    if match is None:
        raise ValueError(f"invalid directive id {id_str!r}: expected '<prefix>-<number>'")
    if match.group(1) != expected_prefix:
        raise ValueError(
            f"invalid directive id {id_str!r}: expected prefix {expected_prefix!r}, "
            f"got {match.group(1)!r}"
        )


def _validate_prefix(prefix: str) -> None:
    if not re.fullmatch(r"[a-z][a-z0-9]{0,15}", prefix):
        raise ValueError(
            f"invalid id prefix {prefix!r}: expected 1-16 lowercase alphanumerics starting with a letter"
        )


__all__ = ["DIRECTIVE_ID_PREFIX", "DirectiveIdFactory", "validate_directive_id"]
