"""
flexlm-options — editing session.

File: src/flexlm_options/state/session.py

Purpose
- Hold the loaded license data and the options document being edited, and
  keep validation results current as either changes.

What is included in this file
- ``EditorSession`` with license/options loading, document-level commands and
  four notification channels (license loaded, document changed, validation
  complete, seat summary updated).
- Debounced revalidation through an injected ``TimerFactory``; without one,
  every change validates synchronously.

Functional requirements
- A rejected file never replaces the current license or document.
- Each validation run reads the live document, so the last run after a burst
  of edits reflects the final state.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import structlog

from flexlm_options.config.loader import RuntimeSettings
from flexlm_options.constants import DEFAULT_DEBOUNCE_MS
from flexlm_options.domain.events import DocumentChange, EventChannel
from flexlm_options.domain.models import (
    Directive,
    LicenseData,
    SeatSummary,
    Severity,
    ValidationResult,
)
from flexlm_options.export.options_writer import export_options
from flexlm_options.parsing.license_file import LicenseParseResult, parse_license_file
from flexlm_options.parsing.options_file import OptionsParseResult, parse_options_file
from flexlm_options.parsing.reference import ProductCatalog, load_product_catalog
from flexlm_options.state.document import OptionsDocument
from flexlm_options.utils.scheduling import Debouncer, TimerFactory
from flexlm_options.validation.engine import ValidationEngine, ValidationReport


class EditorSession:
    """License data + options document + always-fresh validation report."""

    def __init__(
        self,
        *,
        reference_products: ProductCatalog | None = None,
        today: date | None = None,
        timer_factory: TimerFactory | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_MS / 1000.0,
        logger: Any | None = None,
    ) -> None:
        self._reference_products = (
            reference_products if reference_products is not None else load_product_catalog()
        )
        self._today = today
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._engine = ValidationEngine(
            reference_products=self._reference_products, today=today, logger=self._logger
        )

        self.license_loaded: EventChannel[LicenseData] = EventChannel("session.license_loaded")
        self.document_changed: EventChannel[DocumentChange] = EventChannel(
            "session.document_changed"
        )
        self.validation_complete: EventChannel[ValidationReport] = EventChannel(
            "session.validation_complete"
        )
        self.seat_summary_updated: EventChannel[SeatSummary] = EventChannel(
            "session.seat_summary_updated"
        )

        self._license_data = LicenseData()
        self._document = OptionsDocument()
        self._report = ValidationReport()
        self._debouncer = (
            Debouncer(self._run_validation, debounce_seconds, timer_factory)
            if timer_factory is not None
            else None
        )
        self._unsubscribe = self._document.changes.subscribe(self._on_document_change)

    @classmethod
    def from_settings(
        cls,
        settings: RuntimeSettings,
        *,
        timer_factory: TimerFactory | None = None,
    ) -> EditorSession:
        return cls(
            reference_products=load_product_catalog(settings.reference_products),
            today=settings.today,
            timer_factory=timer_factory,
            debounce_seconds=settings.debounce_seconds,
        )

    # -- state ---------------------------------------------------------------

    @property
    def license_data(self) -> LicenseData:
        return self._license_data

    @property
    def document(self) -> OptionsDocument:
        return self._document

    @property
    def report(self) -> ValidationReport:
        """Most recent validation report (empty until the first run)."""

        return self._report

    @property
    def reference_products(self) -> ProductCatalog:
        return self._reference_products

    @property
    def validation_pending(self) -> bool:
        return self._debouncer is not None and self._debouncer.pending

    # -- loading -------------------------------------------------------------

    def load_license_text(self, raw_text: str) -> LicenseParseResult:
        result = parse_license_file(raw_text, today=self._today)
        if result.license_data is None:
            self._logger.info(
                "session_license_rejected", reason=result.error, line=result.error_line
            )
            return result
        self._license_data = result.license_data
        self.license_loaded.publish(self._license_data)
        self._schedule()
        return result

    def load_options_text(self, raw_text: str) -> OptionsParseResult:
        result = parse_options_file(raw_text, reference_products=self._reference_products)
        if result.document is None:
            self._logger.info(
                "session_options_rejected", reason=result.error, line=result.error_line
            )
            return result
        self._document.replace_all(result.document.directives)
        return result

    # -- document commands ---------------------------------------------------

    def new_document(self) -> None:
        self._document.reset()

    def toggle_case_insensitive(self) -> bool:
        """Flip ``GROUPCASEINSENSITIVE ON``; returns the new setting."""

        enabled = not self._document.has_group_case_insensitive()
        self._document.set_group_case_insensitive(enabled)
        return enabled

    def apply_suggestion(self, result: ValidationResult) -> tuple[Directive, ...]:
        """Append a suggestion's directives to the document and return them as stored."""

        if result.severity is not Severity.SUGGESTION:
            raise ValueError(f"not a suggestion: {result.severity.value}")
        return tuple(self._document.add(directive) for directive in result.suggested_fix)

    def export_text(self) -> str:
        return export_options(self._document)

    # -- validation ----------------------------------------------------------

    def revalidate(self) -> ValidationReport:
        """Validate now, dropping any pending debounced run."""

        if self._debouncer is not None:
            self._debouncer.cancel()
        self._run_validation()
        return self._report

    def flush(self) -> bool:
        """Run a pending debounced validation immediately; returns whether one was pending."""

        return self._debouncer.flush() if self._debouncer is not None else False

    def close(self) -> None:
        if self._debouncer is not None:
            self._debouncer.cancel()
        self._unsubscribe()

    def _on_document_change(self, change: DocumentChange) -> None:
        self.document_changed.publish(change)
        self._schedule()

    def _schedule(self) -> None:
        if self._debouncer is None:
            self._run_validation()
        else:
            self._debouncer.request()

    def _run_validation(self) -> None:
        self._report = self._engine.run(self._license_data, self._document)
        self.validation_complete.publish(self._report)
        self.seat_summary_updated.publish(self._report.seat_summary)


__all__ = ["EditorSession"]
