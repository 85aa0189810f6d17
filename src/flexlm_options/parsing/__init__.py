"""License file and options file parsers, date helpers and the product table."""

from flexlm_options.parsing.dates import format_dd_mmm_yyyy, parse_dd_mmm_yyyy, parse_expiry
from flexlm_options.parsing.errors import LicenseFileError, OptionsFileError, ParseError
from flexlm_options.parsing.license_file import (
    LicenseParseResult,
    classify_offering,
    parse_license_file,
    preprocess,
)
from flexlm_options.parsing.options_file import (
    IGNORED_KEYWORDS,
    OptionsParseResult,
    ProductQualifier,
    parse_options_file,
    parse_product_qualifier,
)
from flexlm_options.parsing.reference import ProductCatalog, load_product_catalog

__all__ = [
    "IGNORED_KEYWORDS",
    "LicenseFileError",
    "LicenseParseResult",
    "OptionsFileError",
    "OptionsParseResult",
    "ParseError",
    "ProductCatalog",
    "ProductQualifier",
    "classify_offering",
    "format_dd_mmm_yyyy",
    "load_product_catalog",
    "parse_dd_mmm_yyyy",
    "parse_expiry",
    "parse_license_file",
    "parse_options_file",
    "parse_product_qualifier",
    "preprocess",
]
