"""Shared builders for license text, options text and validation contexts."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from flexlm_options.domain.models import (
    Directive,
    LicenseData,
    LicenseOffering,
    LicenseProduct,
)
from flexlm_options.parsing.reference import ProductCatalog, load_product_catalog
from flexlm_options.state.document import OptionsDocument
from flexlm_options.validation.base import ValidationContext

TODAY = date(2025, 6, 1)

DEFAULT_SERVER = "SERVER myhost ABCDEF123456 27000"
DEFAULT_DAEMON = "DAEMON MLM /path/to/mlm options=/path/to/opts.opt port=27001"


def increment_line(
    product_name: str = "MATLAB",
    *,
    version: str = "42",
    expiry: str = "01-jan-2999",
    seats: str = "5",
    key: str = "ABCDEFghij12",
    offering: str = "VENDOR_STRING=lo=CN:",
    asset_info: str = "asset_info=123456",
) -> str:
    return (
        f"INCREMENT {product_name} MLM {version} {expiry} {seats} {key} "
        f"{offering} {asset_info} SIGN=ABCD1234"
    )


def nnu_increment_line(product_name: str = "MATLAB", *, seats: str = "4", **overrides: str) -> str:
    return increment_line(
        product_name,
        seats=seats,
        offering="VENDOR_STRING=lo=NNU: USER_BASED",
        **overrides,
    )


def license_text(
    increments: Iterable[str] = (),
    *,
    server: str | Iterable[str] = DEFAULT_SERVER,
    daemon: str | None = DEFAULT_DAEMON,
) -> str:
    servers = [server] if isinstance(server, str) else list(server)
    lines = [*servers]
    if daemon is not None:
        lines.append(daemon)
    lines.extend(increments)
    return "\n".join(lines) + "\n"


def product(
    product_name: str = "MATLAB",
    *,
    seat_count: int = 5,
    license_number: str = "123456",
    offering: LicenseOffering = LicenseOffering.CONCURRENT,
    product_key: str = "ABCDEFghij12",
    expiration_date: date = date(2999, 1, 1),
) -> LicenseProduct:
    return LicenseProduct(
        product_name=product_name,
        seat_count=seat_count,
        product_key=product_key,
        license_offering=offering,
        license_number=license_number,
        expiration_date=expiration_date,
    )


def license_data(*products: LicenseProduct) -> LicenseData:
    return LicenseData(products=list(products), is_loaded=True)


def catalog(*names: str) -> ProductCatalog:
    if not names:
        return load_product_catalog()
    return ProductCatalog.from_names(names)


def context(
    directives: Iterable[Directive] = (),
    *,
    licensed: LicenseData | None = None,
    reference_products: ProductCatalog | None = None,
    today: date = TODAY,
) -> ValidationContext:
    """Validation context over a fresh document so every directive carries an id."""

    document = OptionsDocument(directives)
    return ValidationContext.build(
        licensed if licensed is not None else LicenseData(),
        document,
        reference_products=reference_products,
        today=today,
    )


__all__ = [
    "DEFAULT_DAEMON",
    "DEFAULT_SERVER",
    "TODAY",
    "catalog",
    "context",
    "increment_line",
    "license_data",
    "license_text",
    "nnu_increment_line",
    "product",
]
