"""Output rendering for the flexlm-options command line.

File: src/flexlm_options/ui/render.py

Purpose
- Provide a thin rendering layer for CLI output.
- Respect the NO_COLOR environment variable and the --no-color CLI flag.

What should be included in this file
- CLIRenderer class with generic output helpers (headings, key/value pairs,
  tables) and the domain views built on them: entitlements, findings and
  the seat summary.
- Factory function to create a renderer with appropriate settings.

Functional requirements
- Plain-text rendering must always work; color is only a severity accent.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING, Final

from flexlm_options.domain.models import Severity
from flexlm_options.export.options_writer import directive_to_line
from flexlm_options.parsing.dates import format_dd_mmm_yyyy

if TYPE_CHECKING:
    from collections.abc import Sequence

    from flexlm_options.domain.models import LicenseData, SeatSummary, ValidationResult

_SEVERITY_COLORS: Final[dict[Severity, str]] = {
    Severity.ERROR: "\033[31m",
    Severity.WARNING: "\033[33m",
    Severity.INFO: "\033[36m",
    Severity.SUGGESTION: "\033[32m",
}
_RESET: Final[str] = "\033[0m"


def _color_allowed(no_color_flag: bool) -> bool:
    """Check whether color output should be attempted."""

    if no_color_flag:
        return False
    if os.environ.get("NO_COLOR", ""):
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


class CLIRenderer:
    """Thin CLI output renderer.

    Produces clean, deterministic plain-text output.
    Respects ``NO_COLOR`` env var and ``--no-color`` flag.
    """

    def __init__(self, *, no_color: bool = False, verbose: bool = False) -> None:
        self.verbose = verbose
        self._color = _color_allowed(no_color)

    def heading(self, text: str) -> None:
        print(text)

    def kv(self, key: str, value: object) -> None:
        print(f"{key}: {value}")

    def text(self, line: str) -> None:
        print(line)

    def section(self, title: str) -> None:
        """Print a section header with a preceding blank line."""

        print(f"\n{title}")

    def warning(self, text: str) -> None:
        print(f"  Warning: {text}")

    def items(self, entries: Sequence[str], *, prefix: str = "- ") -> None:
        for entry in entries:
            print(f"  {prefix}{entry}")

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        *,
        title: str | None = None,
    ) -> None:
        """Print a formatted ASCII table."""

        if not rows:
            return

        col_count = len(headers)
        widths = [len(h) for h in headers]
        for row in rows:
            for i in range(min(len(row), col_count)):
                widths[i] = max(widths[i], len(str(row[i])))

        def _pad(cells: Sequence[str]) -> str:
            parts: list[str] = []
            for i in range(col_count):
                cell = str(cells[i]) if i < len(cells) else ""
                parts.append(cell.ljust(widths[i]))
            return "  ".join(parts).rstrip()

        if title:
            self.section(title)
        print(f"  {_pad(list(headers))}")
        print(f"  {'  '.join('-' * w for w in widths)}")
        for row in rows:
            print(f"  {_pad(list(row))}")

    # -- domain views --------------------------------------------------------

    def entitlements(self, license_data: LicenseData) -> None:
        rows = [
            (
                product.product_name,
                product.license_number,
                product.license_offering.label,
                str(product.seat_count),
                format_dd_mmm_yyyy(product.expiration_date),
                product.product_key,
            )
            for product in license_data.products
        ]
        self.table(
            ("Product", "License", "Offering", "Seats", "Expires", "Key"),
            rows,
            title=f"Entitlements ({len(rows)}):",
        )
        if not license_data.server_line_has_port:
            self.warning("SERVER line has no port number.")
        if not license_data.daemon_line_has_port:
            self.warning("DAEMON line has no port number.")

    def findings(self, results: Sequence[ValidationResult]) -> None:
        if not results:
            self.section("No findings.")
            return
        self.section(f"Findings ({len(results)}):")
        for result in results:
            location = f" [{result.directive_id}]" if result.directive_id else ""
            print(f"  {self._severity_label(result.severity)}{location} {result.message}")
            for directive in result.suggested_fix:
                print(f"      + {directive_to_line(directive)}")

    def seat_summary(self, summary: SeatSummary) -> None:
        if not summary:
            self.section("No seat summary (no license loaded).")
            return
        headers = ["Product", "License", "Offering", "Total", "Used", "Remaining"]
        if self.verbose:
            headers.append("Directives")
        rows: list[list[str]] = []
        for entry in summary:
            row = [
                entry.product_name,
                entry.license_number,
                entry.license_offering.label,
                str(entry.total),
                str(entry.used),
                str(entry.remaining),
            ]
            if self.verbose:
                row.append(", ".join(entry.contributing_directive_ids))
            rows.append(row)
        self.table(
            headers,
            rows,
            title="Seat summary:",
        )

    def _severity_label(self, severity: Severity) -> str:
        label = severity.value.upper()
        if not self._color:
            return label
        return f"{_SEVERITY_COLORS[severity]}{label}{_RESET}"


def create_renderer(*, no_color: bool = False, verbose: bool = False) -> CLIRenderer:
    """Create a CLI renderer with the given settings."""

    return CLIRenderer(no_color=no_color, verbose=verbose)


__all__ = ["CLIRenderer", "create_renderer"]
