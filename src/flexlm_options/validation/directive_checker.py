"""
flexlm-options — directive shape checks.

File: src/flexlm_options/validation/directive_checker.py

Purpose
- Field-level checks on each directive (required values, client types, counts)
  and cross-directive checks (duplicates, INCLUDE/EXCLUDE conflicts, borrowing
  without an INCLUDE).
"""

from __future__ import annotations

from typing import Final

from flexlm_options.constants import IP_ADDRESS_RE, PARALLEL_SERVER_PRODUCT_NAME
from flexlm_options.domain.models import (
    ClientTargetFields,
    ClientType,
    Directive,
    Exclude,
    Group,
    HostGroup,
    Include,
    IncludeBorrow,
    Max,
    ProductTargetFields,
    Reserve,
    ValidationResult,
)
from flexlm_options.validation.base import ValidationContext, error, info, plural, warning

_PARALLEL_SERVER_NOTE: Final[str] = (
    "MATLAB Parallel Server: the username must correspond to the cluster username. "
    "This does not prevent users from accessing the cluster."
)


def check_directives(context: ValidationContext) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    for directive in context.directives:
        results.extend(_check_one(directive, context))
    results.extend(_duplicate_includes(context))
    results.extend(_include_exclude_conflicts(context))
    results.extend(_borrow_without_include(context))
    return results


def _check_one(directive: Directive, context: ValidationContext) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    directive_id = directive.directive_id
    keyword = directive.keyword

    if isinstance(directive, (ProductTargetFields, Max)) and not directive.product_name.strip():
        results.append(error(f"{keyword} line is missing a product name.", directive_id))

    if isinstance(directive, ClientTargetFields):
        results.extend(_check_client(directive))

    if isinstance(directive, Reserve) and not _is_positive_int(directive.seat_count):
        results.append(
            error(f"RESERVE line has an invalid seat count: {directive.seat_count}.", directive_id)
        )

    if isinstance(directive, Max):
        if not _is_positive_int(directive.max_seats):
            results.append(
                error(f"MAX line has an invalid seat count: {directive.max_seats}.", directive_id)
            )
        elif context.license_loaded and directive.product_name:
            total = context.license_data.total_seats(directive.product_name)
            if 0 < total < directive.max_seats:
                results.append(
                    warning(
                        f"MAX line specifies {directive.max_seats} "
                        f"{plural(directive.max_seats, 'seat')} for \"{directive.product_name}\", "
                        f"but only {total} {plural(total, 'seat')} are available in the license file.",
                        directive_id,
                    )
                )

    if isinstance(directive, (Group, HostGroup)):
        if not directive.group_name.strip():
            results.append(error(f"{keyword} is missing a name.", directive_id))
        if not directive.members:
            results.append(
                error(f'{keyword} "{directive.group_name}" has no members.', directive_id)
            )

    if getattr(directive, "product_name", "") == PARALLEL_SERVER_PRODUCT_NAME:
        results.append(info(_PARALLEL_SERVER_NOTE, directive_id))

    return results


def _check_client(directive: ClientTargetFields) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    directive_id = directive.directive_id
    keyword = directive.keyword
    if ClientType.parse(directive.client_type) is None:
        results.append(
            error(
                f'{keyword} line has an invalid client type: "{directive.client_type or "(empty)"}".',
                directive_id,
            )
        )
    value = directive.client_specified
    if not value.strip():
        results.append(
            error(
                f"{keyword} line is missing the {directive.client_type or 'client'} value.",
                directive_id,
            )
        )
    if "*" in value:
        results.append(
            warning(f"Wildcard used in {keyword} line. Wildcards may be unreliable.", directive_id)
        )
    if IP_ADDRESS_RE.search(value):
        results.append(
            warning(
                f"IP address used in {keyword} line. "
                "IP addresses are often dynamic and unreliable.",
                directive_id,
            )
        )
    return results


def _duplicate_includes(context: ValidationContext) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    seen: set[tuple[str, str, str]] = set()
    for directive in context.of_type(Include):
        if not _complete(directive):
            continue
        key = _conflict_key(directive)
        if key in seen:
            results.append(
                warning(
                    f'Duplicate INCLUDE: "{directive.product_name}" for {directive.client_type} '
                    f'"{directive.client_specified}" already exists.',
                    directive.directive_id,
                )
            )
        else:
            seen.add(key)
    return results


def _include_exclude_conflicts(context: ValidationContext) -> list[ValidationResult]:
    excluded = {_conflict_key(d) for d in context.of_type(Exclude) if _complete(d)}
    results: list[ValidationResult] = []
    for directive in context.of_type(Include):
        if _complete(directive) and _conflict_key(directive) in excluded:
            results.append(
                warning(
                    f'"{directive.product_name}" has both INCLUDE and EXCLUDE for '
                    f'{directive.client_type} "{directive.client_specified}". '
                    "EXCLUDE takes priority in FlexLM.",
                    directive.directive_id,
                )
            )
    return results


def _borrow_without_include(context: ValidationContext) -> list[ValidationResult]:
    included = {d.product_name for d in context.of_type(Include) if d.product_name}
    results: list[ValidationResult] = []
    for directive in context.of_type(IncludeBorrow):
        if directive.product_name and directive.product_name not in included:
            results.append(
                warning(
                    f'INCLUDE_BORROW for "{directive.product_name}" but no INCLUDE exists for '
                    "this product. Borrowing requires an active INCLUDE.",
                    directive.directive_id,
                )
            )
    return results


def _complete(directive: ProductTargetFields) -> bool:
    return bool(directive.product_name and directive.client_type and directive.client_specified)


def _conflict_key(directive: ProductTargetFields) -> tuple[str, str, str]:
    return (directive.product_name, directive.client_type, directive.client_specified)


def _is_positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


__all__ = ["check_directives"]
