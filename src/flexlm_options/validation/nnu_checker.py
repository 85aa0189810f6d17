"""
flexlm-options — named-user (NNU) rules.

File: src/flexlm_options/validation/nnu_checker.py

Purpose
- NNU seats are held per named person, so every NNU product needs USER or
  GROUP INCLUDEs and benefits from a per-user MAX cap.

What is included in this file
- NNU-only license requirements (errors).
- INCLUDEALL, client-type, missing-assignment and license-number ambiguity
  warnings.
- One bundled suggestion carrying ready-to-append MAX directives.
"""

from __future__ import annotations

from collections.abc import Iterator

from flexlm_options.domain.models import (
    ClientType,
    Include,
    IncludeAll,
    IncludeBorrow,
    LicenseOffering,
    Max,
    Severity,
    ValidationResult,
)
from flexlm_options.validation.base import ValidationContext, error, plural, warning

_PER_USER_CLIENT_TYPES = frozenset({ClientType.USER.value, ClientType.GROUP.value})


def check_named_user(context: ValidationContext) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    if not context.license_loaded:
        return results

    license_data = context.license_data
    includes = context.of_type(Include)

    if license_data.is_named_user_only():
        if not includes:
            results.append(error("NNU-only license: you must have at least one INCLUDE line."))
        elif not any(d.client_type in _PER_USER_CLIENT_TYPES for d in includes):
            results.append(
                error(
                    "NNU-only license: at least one INCLUDE line must use USER or GROUP client type."
                )
            )

    if not license_data.has_named_user_products():
        return results

    for include_all in context.of_type(IncludeAll):
        results.append(
            warning(
                "INCLUDEALL does not apply to NNU products. "
                "NNU seats will not be subtracted for this line.",
                include_all.directive_id,
            )
        )

    nnu_names = _nnu_product_names(context)
    results.extend(_unassigned_products(context, nnu_names))

    for directive in context.directives:
        if not isinstance(directive, (Include, IncludeBorrow)):
            continue
        if directive.product_name.lower() not in nnu_names:
            continue
        if directive.client_type not in _PER_USER_CLIENT_TYPES:
            results.append(
                warning(
                    f'NNU product "{directive.product_name}" should use USER or GROUP '
                    f"client type, not {directive.client_type}.",
                    directive.directive_id,
                )
            )

    results.extend(_ambiguous_license_numbers(context, nnu_names))

    suggestion = _max_suggestion(context, nnu_names)
    if suggestion is not None:
        results.append(suggestion)
    return results


def _nnu_product_names(context: ValidationContext) -> dict[str, str]:
    """Case-folded NNU product name -> name as written in the license file."""

    names: dict[str, str] = {}
    for product in context.license_data.products:
        if product.license_offering is LicenseOffering.NAMED_USER:
            names.setdefault(product.product_name.lower(), product.product_name)
    return names


def _unassigned_products(
    context: ValidationContext, nnu_names: dict[str, str]
) -> Iterator[ValidationResult]:
    assigned = {
        d.product_name.lower()
        for d in context.of_type(Include)
        if d.client_type in _PER_USER_CLIENT_TYPES
    }
    for folded, product_name in nnu_names.items():
        if folded not in assigned:
            yield warning(
                f'NNU product "{product_name}" has no seats assigned. '
                "Add an INCLUDE line with USER or GROUP client type."
            )


def _ambiguous_license_numbers(
    context: ValidationContext, nnu_names: dict[str, str]
) -> Iterator[ValidationResult]:
    for include in context.of_type(Include):
        if include.license_number or include.product_name.lower() not in nnu_names:
            continue
        license_numbers = context.license_data.license_numbers_for(include.product_name)
        if len(license_numbers) < 2:
            continue
        yield warning(
            f'NNU product "{include.product_name}" appears on multiple licenses '
            f"({', '.join(license_numbers)}). This INCLUDE has no license number, so seats "
            "are subtracted from the first license with seats left. "
            "Specify a license number to choose one.",
            include.directive_id,
        )


def _max_suggestion(
    context: ValidationContext, nnu_names: dict[str, str]
) -> ValidationResult | None:
    capped = {
        (d.product_name.lower(), d.client_specified)
        for d in context.of_type(Max)
        if d.client_type == ClientType.USER
    }
    proposed: list[Max] = []
    seen: set[tuple[str, str]] = set()

    for include in context.of_type(Include):
        folded = include.product_name.lower()
        if folded not in nnu_names:
            continue
        for user in _included_users(context, include):
            pair = (folded, user)
            if pair in capped or pair in seen:
                continue
            seen.add(pair)
            total = context.license_data.total_seats(include.product_name)
            proposed.append(
                Max(
                    max_seats=1 if total == 1 else 2,
                    product_name=include.product_name,
                    client_type=ClientType.USER.value,
                    client_specified=user,
                )
            )

    if not proposed:
        return None
    count = len(proposed)
    return ValidationResult(
        Severity.SUGGESTION,
        f"Add MAX lines for {count} {plural(count, 'user')} of NNU products "
        "so no single user can hold more than their named seats.",
        suggested_fix=tuple(proposed),
    )


def _included_users(context: ValidationContext, include: Include) -> tuple[str, ...]:
    if include.client_type == ClientType.USER:
        return (include.client_specified,) if include.client_specified else ()
    if include.client_type == ClientType.GROUP:
        return context.groups.group_members(include.client_specified) or ()
    return ()


__all__ = ["check_named_user"]
