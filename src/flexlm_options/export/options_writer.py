"""
flexlm-options — options file writer.

File: src/flexlm_options/export/options_writer.py

Purpose
- Render an ordered directive sequence back into FlexLM options file text.

Functional requirements
- One line per directive in document order, newline-terminated.
- Re-parsing the output yields an equivalent directive sequence.
- Qualified products are written as ``"<product> asset_info=<n>"`` or
  ``"<product> key=<k>"``; the license number wins when both are set.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import assert_never

from flexlm_options.domain.models import (
    Comment,
    Directive,
    Exclude,
    ExcludeAll,
    ExcludeBorrow,
    Group,
    GroupCaseInsensitive,
    HostGroup,
    Include,
    IncludeAll,
    IncludeBorrow,
    Max,
    Reserve,
)


def export_options(directives: Iterable[Directive]) -> str:
    """Return options file text for ``directives`` (an ``OptionsDocument`` works too)."""

    return "\n".join(directive_to_line(directive) for directive in directives) + "\n"


def write_options_file(directives: Iterable[Directive], path: Path | str) -> Path:
    target = Path(path)
    target.write_text(export_options(directives), encoding="utf-8")
    return target


def directive_to_line(directive: Directive) -> str:
    match directive:
        case Include() | Exclude() | IncludeBorrow() | ExcludeBorrow():
            parts = [
                directive.keyword,
                format_product_part(
                    directive.product_name, directive.license_number, directive.product_key
                ),
                directive.client_type,
                directive.client_specified,
            ]
        case IncludeAll() | ExcludeAll():
            parts = [directive.keyword, directive.client_type, directive.client_specified]
        case Reserve():
            parts = [
                directive.keyword,
                str(directive.seat_count),
                format_product_part(
                    directive.product_name, directive.license_number, directive.product_key
                ),
                directive.client_type,
                directive.client_specified,
            ]
        case Max():
            parts = [
                directive.keyword,
                str(directive.max_seats),
                directive.product_name,
                directive.client_type,
                directive.client_specified,
            ]
        case Group() | HostGroup():
            parts = [directive.keyword, directive.group_name, *directive.members]
        case GroupCaseInsensitive():
            parts = [directive.keyword, "ON"]
        case Comment():
            parts = [directive.keyword, directive.text]
        case _:
            assert_never(directive)
    return " ".join(part for part in parts if part)


def format_product_part(product_name: str, license_number: str = "", product_key: str = "") -> str:
    if license_number:
        return f'"{product_name} asset_info={license_number}"'
    if product_key:
        return f'"{product_name} key={product_key}"'
    return product_name


__all__ = ["directive_to_line", "export_options", "format_product_part", "write_options_file"]
