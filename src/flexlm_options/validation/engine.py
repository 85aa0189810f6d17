"""
Validation engine: runs every checker in a fixed order and bundles the result.

The engine is stateless apart from its logger; each ``validate`` call builds
findings and the seat summary from scratch.

It integrates with:
- the product, directive, group and NNU checkers (pure functions)
- the seat calculator (findings plus a ``SeatSummary``)
- `structlog` for machine-parseable run logs
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

import structlog

from flexlm_options.domain.models import LicenseData, SeatSummary, Severity, ValidationResult
from flexlm_options.parsing.reference import ProductCatalog
from flexlm_options.validation.base import ValidationContext, Validator
from flexlm_options.validation.directive_checker import check_directives
from flexlm_options.validation.group_checker import check_groups
from flexlm_options.validation.nnu_checker import check_named_user
from flexlm_options.validation.product_checker import check_products
from flexlm_options.validation.seat_calculator import calculate_seats

if TYPE_CHECKING:
    from flexlm_options.state.document import OptionsDocument


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Ordered findings and per-entry seat allocation for one validation run."""

    results: tuple[ValidationResult, ...] = ()
    seat_summary: SeatSummary = field(default_factory=SeatSummary)

    @property
    def has_errors(self) -> bool:
        return any(r.severity is Severity.ERROR for r in self.results)

    def by_severity(self, severity: Severity) -> tuple[ValidationResult, ...]:
        return tuple(r for r in self.results if r.severity is severity)

    def for_directive(self, directive_id: str) -> tuple[ValidationResult, ...]:
        return tuple(r for r in self.results if r.directive_id == directive_id)

    def severity_counts(self) -> dict[str, int]:
        counts = Counter(r.severity.value for r in self.results)
        return {severity.value: counts.get(severity.value, 0) for severity in Severity}

    def to_dict(self) -> dict[str, object]:
        return {
            "has_errors": self.has_errors,
            "counts": self.severity_counts(),
            "results": [r.to_dict() for r in self.results],
            "seat_summary": self.seat_summary.to_dict(),
        }


_LEADING_VALIDATORS: tuple[Validator, ...] = (check_products, check_directives, check_groups)


def validate(context: ValidationContext) -> ValidationReport:
    """Run product, directive, group, seat and NNU checks in that order."""

    results: list[ValidationResult] = []
    for validator in _LEADING_VALIDATORS:
        results.extend(validator(context))
    seats = calculate_seats(context)
    results.extend(seats.results)
    results.extend(check_named_user(context))
    return ValidationReport(results=tuple(results), seat_summary=seats.summary)


class ValidationEngine:
    """Build a context from live state, validate it and log the outcome."""

    def __init__(
        self,
        *,
        reference_products: ProductCatalog | None = None,
        today: date | None = None,
        logger: Any | None = None,
    ) -> None:
        self._reference_products = reference_products
        self._today = today
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    def run(self, license_data: LicenseData, document: OptionsDocument) -> ValidationReport:
        context = ValidationContext.build(
            license_data,
            document,
            reference_products=self._reference_products,
            today=self._today,
        )
        report = validate(context)
        self._logger.info(
            "validation_completed",
            directives=len(context.directives),
            license_loaded=context.license_loaded,
            counts=report.severity_counts(),
            seat_entries=len(report.seat_summary),
        )
        return report


__all__ = ["ValidationEngine", "ValidationReport", "validate"]
