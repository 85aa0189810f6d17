"""
flexlm-options — seat allocation simulator.

File: src/flexlm_options/validation/seat_calculator.py

Purpose
- Replay INCLUDE, INCLUDEALL and RESERVE directives against the license
  entitlements to compute remaining seats and detect overdraft.

What is included in this file
- A per-call ledger seeded from each product's original seat count.
- First-fit allocation with force-subtraction of any shortfall.
- Overdraft findings (NNU error, CN warning) and the ``SeatSummary``.

Functional requirements
- Stateless between calls; identical inputs give identical output.
- Passes run in a fixed order: all INCLUDEs, then INCLUDEALLs, then RESERVEs.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from flexlm_options.domain.models import (
    ClientTargetFields,
    ClientType,
    Include,
    IncludeAll,
    LicenseOffering,
    LicenseProduct,
    Reserve,
    SeatSummary,
    SeatSummaryEntry,
    ValidationResult,
)
from flexlm_options.validation.base import GroupIndex, ValidationContext, error, plural, warning


@dataclass(slots=True)
class _LedgerEntry:
    product: LicenseProduct
    remaining: int
    directive_ids: list[str] = field(default_factory=list)

    def charge(self, amount: int, directive_id: str) -> None:
        self.remaining -= amount
        if directive_id not in self.directive_ids:
            self.directive_ids.append(directive_id)

    def to_summary(self) -> SeatSummaryEntry:
        return SeatSummaryEntry(
            product_name=self.product.product_name,
            license_number=self.product.license_number,
            license_offering=self.product.license_offering,
            product_key=self.product.product_key,
            total=self.product.original_seat_count,
            remaining=self.remaining,
            contributing_directive_ids=tuple(self.directive_ids),
        )


@dataclass(frozen=True, slots=True)
class SeatCalculation:
    """Overdraft findings plus the per-entry allocation summary."""

    results: tuple[ValidationResult, ...]
    summary: SeatSummary


def calculate_seats(context: ValidationContext) -> SeatCalculation:
    license_data = context.license_data
    if not context.license_loaded or not license_data.products:
        return SeatCalculation(results=(), summary=SeatSummary())

    ledger = [
        _LedgerEntry(product=product, remaining=product.original_seat_count)
        for product in license_data.products
    ]
    groups = context.groups

    for include in context.of_type(Include):
        amount = subtraction_amount(include, groups)
        _allocate(ledger, include, amount)

    for include_all in context.of_type(IncludeAll):
        amount = subtraction_amount(include_all, groups)
        if amount == 0:
            continue
        for entry in ledger:
            if entry.product.license_offering is LicenseOffering.NAMED_USER:
                continue
            entry.charge(amount, include_all.directive_id)

    for reserve in context.of_type(Reserve):
        _allocate(ledger, reserve, reserve.seat_count)

    return SeatCalculation(
        results=tuple(_overdraft_findings(ledger)),
        summary=SeatSummary(entry.to_summary() for entry in ledger),
    )


def subtraction_amount(directive: ClientTargetFields, groups: GroupIndex) -> int:
    """Seats one directive consumes: 1 per USER, one per GROUP member, else 0."""

    if directive.client_type == ClientType.USER:
        return 1
    if directive.client_type == ClientType.GROUP:
        members = groups.group_members(directive.client_specified)
        return len(members) if members is not None else 0
    return 0


def _allocate(ledger: Sequence[_LedgerEntry], directive: Include | Reserve, amount: int) -> None:
    if not directive.product_name or amount <= 0:
        return
    matches = _matching_entries(ledger, directive)
    if not matches:
        return

    outstanding = amount
    for entry in matches:
        if outstanding <= 0:
            break
        if entry.remaining <= 0:
            continue
        taken = min(outstanding, entry.remaining)
        entry.charge(taken, directive.directive_id)
        outstanding -= taken

    if outstanding > 0:
        matches[0].charge(outstanding, directive.directive_id)


def _matching_entries(
    ledger: Sequence[_LedgerEntry], directive: Include | Reserve
) -> list[_LedgerEntry]:
    wanted = directive.product_name.lower()
    return [
        entry
        for entry in ledger
        if entry.product.product_name.lower() == wanted
        and (not directive.license_number or entry.product.license_number == directive.license_number)
        and (not directive.product_key or entry.product.product_key == directive.product_key)
    ]


def _overdraft_findings(ledger: Sequence[_LedgerEntry]) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    for entry in ledger:
        if entry.remaining >= 0:
            continue
        product = entry.product
        total = product.original_seat_count
        if product.license_offering is LicenseOffering.NAMED_USER:
            results.append(
                error(
                    f'NNU product "{product.product_name}" on license {product.license_number}: '
                    f"more users specified ({total - entry.remaining}) than "
                    f"{plural(total, 'seat')} available ({total})."
                )
            )
        elif product.license_offering is LicenseOffering.CONCURRENT:
            results.append(
                warning(
                    f'CN product "{product.product_name}" on license {product.license_number}: '
                    f"more users specified than {plural(total, 'seat')} available. "
                    "Possible License Manager Error -4."
                )
            )
    return results


__all__ = ["SeatCalculation", "calculate_seats", "subtraction_amount"]
