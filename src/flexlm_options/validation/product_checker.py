"""Product-name checks against the reference table and the loaded license file."""

from __future__ import annotations

from flexlm_options.domain.models import ValidationResult
from flexlm_options.validation.base import ValidationContext, error, warning


def check_products(context: ValidationContext) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    license_data = context.license_data
    licensed_names = (
        {name.lower() for name in license_data.product_names()} if context.license_loaded else None
    )
    expired_warned: set[str] = set()

    for directive in context.directives:
        product_name = getattr(directive, "product_name", "")
        if not product_name:
            continue
        directive_id = directive.directive_id

        if product_name not in context.reference_products:
            results.append(
                error(f'"{product_name}" is not a recognized MathWorks product.', directive_id)
            )
        elif licensed_names is not None and product_name.lower() not in licensed_names:
            results.append(error(f'"{product_name}" is not in your license file.', directive_id))

        if not context.license_loaded:
            continue
        entries = license_data.products_named(product_name)
        if not entries:
            continue

        license_number = getattr(directive, "license_number", "")
        known_numbers = license_data.license_numbers_for(product_name)
        if license_number and license_number not in known_numbers:
            results.append(
                error(
                    f'License number "{license_number}" does not exist for product '
                    f'"{product_name}" in the license file.',
                    directive_id,
                )
            )
        product_key = getattr(directive, "product_key", "")
        if product_key and product_key not in license_data.product_keys_for(product_name):
            results.append(
                error(
                    f'Product key "{product_key}" does not exist for product '
                    f'"{product_name}" in the license file.',
                    directive_id,
                )
            )

        folded = product_name.lower()
        if folded not in expired_warned and all(e.is_expired(context.today) for e in entries):
            expired_warned.add(folded)
            results.append(
                warning(
                    f'"{product_name}" has expired in the license file. '
                    "Directives for this product will have no effect.",
                    directive_id,
                )
            )

    return results


__all__ = ["check_products"]
