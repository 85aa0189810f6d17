"""
flexlm-options — license file parser.

File: src/flexlm_options/parsing/license_file.py

Purpose
- Turn the text of a FlexLM license file (``.lic``/``.dat``) into ``LicenseData``
  or a single fatal, user-facing error.

What is included in this file
- Whole-text guards for license types that cannot use an options file.
- SERVER / DAEMON / INCREMENT line rules.
- The ordered offering rule table used when an INCREMENT line is classified.

Functional requirements
- Never return a partially populated model: the first fatal rule aborts the file.
- Soft problems (missing ports, USE_SERVER) are returned as warnings.

Non-functional requirements
- Deterministic for a given ``today``; no I/O.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Final

import structlog

from flexlm_options.constants import (
    BUNDLED_PRODUCT_MARKER,
    BUNDLING_PRODUCT_NAME,
    MISLABELLED_CN_LICENSE_NUMBER,
    PARALLEL_SERVER_PRODUCT_NAME,
    PORTS_MISTAKEN_FOR_HOST_ID,
    PRODUCT_KEY_MAX_LENGTH,
    PRODUCT_KEY_MIN_LENGTH,
    TRIAL_LICENSE_NUMBER,
    VALID_SERVER_LINE_COUNTS,
    VENDOR_DAEMON_NAME,
)
from flexlm_options.domain.models import LicenseData, LicenseOffering, LicenseProduct
from flexlm_options.parsing.dates import parse_expiry
from flexlm_options.parsing.errors import LicenseFileError

logger = structlog.get_logger(__name__)

_CONTINUATIONS: Final[tuple[str, ...]] = ("\\\r\n", "\\\n\t", "\\\n")
_LINE_SPLIT_RE: Final[re.Pattern[str]] = re.compile(r"\r\n|\r|\n")
_ASSET_INFO_RE: Final[re.Pattern[str]] = re.compile(r"asset_info=(\S+)", re.IGNORECASE)
_SERIAL_NUMBER_RE: Final[re.Pattern[str]] = re.compile(r"SN=(\S+)", re.IGNORECASE)
_INVALID_LICENSE_NUMBER_RE: Final[re.Pattern[str]] = re.compile(r"^[^Rab_\d]+$")
_PORT_RE: Final[re.Pattern[str]] = re.compile(r"port=", re.IGNORECASE)
_OPTIONS_RE: Final[re.Pattern[str]] = re.compile(r"options=", re.IGNORECASE)
_TEMPLATE_FRAGMENT_RE: Final[re.Pattern[str]] = re.compile(r"# BEGIN--------------", re.IGNORECASE)

_NO_PORT_ON_SERVER: Final[str] = "No port number specified on the SERVER line."
_NO_PORT_ON_DAEMON: Final[str] = (
    "No port number specified on the DAEMON line. "
    "A random port will be chosen each time FlexLM restarts."
)
_USE_SERVER_FOUND: Final[str] = (
    "USE_SERVER was found in the license file. This line is not needed and can be removed."
)


@dataclass(frozen=True, slots=True)
class LicenseParseResult:
    """Outcome of ``parse_license_file``: a model or an error, plus warnings."""

    license_data: LicenseData | None
    warnings: tuple[str, ...] = ()
    error: str | None = None
    error_line: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.license_data is not None

    def unwrap(self) -> LicenseData:
        """Return the model or raise ``LicenseFileError`` with the recorded error."""

        if self.license_data is None or self.error is not None:
            raise LicenseFileError(self.error or "license file was not parsed", line=self.error_line)
        return self.license_data


# ---------------------------------------------------------------------------
# Offering rule table
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _EntitlementFacts:
    """What the offering rules may look at for one INCREMENT line."""

    line: str
    full_text: str
    product_name: str
    product_key: str
    seat_count: int
    in_bundle: bool

    def has(self, marker: str) -> bool:
        return marker in self.line

    @property
    def has_asset_info(self) -> bool:
        return "asset_info=" in self.line

    @property
    def inferred(self) -> bool:
        """No explicit ``lo=`` marker, but a rate marker or bundling context decides."""

        return self.has("lr=") or self.in_bundle or not self.has_asset_info


@dataclass(frozen=True, slots=True)
class _OfferingRule:
    applies: Callable[[_EntitlementFacts], bool]
    offering: LicenseOffering | None = None
    rejection: str | None = None


def _explicit(marker: str) -> Callable[[_EntitlementFacts], bool]:
    return lambda facts: facts.has("lo=") and facts.has(marker)


# First matching rule wins.
_OFFERING_RULES: Final[tuple[_OfferingRule, ...]] = (
    _OfferingRule(_explicit("lo=CN:"), offering=LicenseOffering.CONCURRENT),
    _OfferingRule(_explicit("lo=CNU"), offering=LicenseOffering.CONCURRENT_USER),
    _OfferingRule(_explicit("lo=NNU"), offering=LicenseOffering.NAMED_USER),
    _OfferingRule(
        lambda f: f.has("lo=") and f.has("lo=TH") and not f.has("USER_BASED"),
        offering=LicenseOffering.CONCURRENT,
    ),
    _OfferingRule(
        _explicit("lo=TH"),
        rejection="{product}'s license offering is Total Headcount with USER_BASED, which is invalid.",
    ),
    _OfferingRule(
        lambda f: f.has("lo="),
        rejection="Product {product} has an invalid license offering.",
    ),
    _OfferingRule(
        lambda f: f.inferred and f.seat_count > 0 and f.has("USER_BASED"),
        offering=LicenseOffering.NAMED_USER,
    ),
    _OfferingRule(
        lambda f: f.inferred
        and f.seat_count > 0
        and f.in_bundle
        and not f.has_asset_info
        and not f.has("ISSUED="),
        rejection=(
            "Product {product} comes from a Designated Computer license, "
            "which cannot use an options file."
        ),
    ),
    _OfferingRule(
        lambda f: f.inferred and f.seat_count > 0,
        offering=LicenseOffering.CONCURRENT,
    ),
    _OfferingRule(
        lambda f: f.inferred and f.in_bundle and not f.has_asset_info,
        rejection=(
            "Product {product} comes from an Individual license, which cannot use an options file."
        ),
    ),
    _OfferingRule(
        lambda f: f.inferred,
        rejection=(
            "Product {product} comes from an Individual or Designated Computer license, "
            "which cannot use an options file."
        ),
    ),
    _OfferingRule(
        lambda f: f.has("PLATFORMS=x"),
        rejection=(
            "Product {product} comes from a Designated Computer license generated from a PLP "
            "on Windows, which cannot use an options file."
        ),
    ),
    _OfferingRule(
        lambda f: len(f.product_key) == PRODUCT_KEY_MAX_LENGTH
        and BUNDLING_PRODUCT_NAME not in f.full_text,
        rejection=(
            "The license file is either a Windows Individual license from a PLP or is missing "
            "the TMW_Archive product for pre-R2008a products."
        ),
    ),
    _OfferingRule(
        lambda f: len(f.product_key) == PRODUCT_KEY_MAX_LENGTH,
        rejection=(
            "Product {product} comes from a Designated Computer license, "
            "which cannot use an options file."
        ),
    ),
    _OfferingRule(
        lambda f: True,
        rejection="Product {product} has an invalid license offering.",
    ),
)


def classify_offering(facts: _EntitlementFacts) -> LicenseOffering:
    """Apply ``_OFFERING_RULES``; rejections raise ``LicenseFileError``."""

    for rule in _OFFERING_RULES:
        if not rule.applies(facts):
            continue
        if rule.offering is not None:
            return rule.offering
        raise LicenseFileError((rule.rejection or "").format(product=facts.product_name))
    raise LicenseFileError(f"Product {facts.product_name} has an invalid license offering.")


# ---------------------------------------------------------------------------
# Whole-text guards
# ---------------------------------------------------------------------------

_TEXT_GUARDS: Final[tuple[tuple[Callable[[str], bool], str], ...]] = (
    (
        lambda text: "INCREMENT" not in text,
        "The license file does not contain any products (no INCREMENT lines found).",
    ),
    (
        lambda text: any(marker in text for marker in ("lo=IN", "lo=DC", "lo=CIN")),
        "The license file contains an Individual or Designated Computer license, "
        "which cannot use an options file.",
    ),
    (
        lambda text: "CONTRACT_ID=" in text,
        "The license file contains at least one non-MathWorks product.",
    ),
)


# ---------------------------------------------------------------------------
# Line scanner
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _LicenseScanner:
    text: str
    today: date
    data: LicenseData = field(default_factory=LicenseData)
    warnings: list[str] = field(default_factory=list)
    server_lines: int = 0
    daemon_lines: int = 0
    products_reached: bool = False
    in_bundle: bool = False
    bundle_license_number: str = ""

    def scan(self, lines: list[str]) -> LicenseData:
        for number, line in enumerate(lines, start=1):
            try:
                self._dispatch(line)
            except LicenseFileError as exc:
                if exc.line is None:
                    exc.line = number
                raise

        if self.server_lines not in VALID_SERVER_LINE_COUNTS:
            if self.server_lines == 0:
                raise LicenseFileError("The license file has no SERVER lines.")
            raise LicenseFileError(
                "The license file has an invalid number of SERVER lines. Only 1 or 3 are accepted."
            )

        if not self.data.server_line_has_port:
            self.warnings.append(_NO_PORT_ON_SERVER)
        if not self.data.daemon_line_has_port:
            self.warnings.append(_NO_PORT_ON_DAEMON)

        self.data.is_loaded = True
        return self.data

    def _dispatch(self, line: str) -> None:
        trimmed = line.strip()
        if trimmed.startswith("SERVER"):
            self._server_line(trimmed)
        elif trimmed.startswith(("DAEMON", "VENDOR")):
            self._daemon_line(trimmed)
        elif trimmed.startswith("INCREMENT"):
            self._increment_line(trimmed)
        elif not trimmed or trimmed.startswith("#"):
            return
        elif trimmed.startswith("USE_SERVER"):
            self.warnings.append(_USE_SERVER_FOUND)
        else:
            raise LicenseFileError(
                f'Unrecognized line in the license file: "{line}". '
                "The file may have been manually edited and may need to be regenerated."
            )

    def _server_line(self, line: str) -> None:
        if self.products_reached:
            raise LicenseFileError("The SERVER line(s) are listed after a product.")
        self.server_lines += 1
        parts = line.split()

        if parts[0] != "SERVER":
            raise LicenseFileError(
                "A line starts with SERVER but does not have the correct format."
            )
        host_id = _token(parts, 2)
        if host_id in PORTS_MISTAKEN_FOR_HOST_ID:
            raise LicenseFileError(
                "You have likely omitted your Host ID and attempted to specify a SERVER port number."
            )

        if len(parts) < 3:
            raise LicenseFileError("The SERVER line is missing required information.")
        if len(parts) == 3:
            self.data.server_line_has_port = False
            return
        if len(parts) > 4 or not _is_integer(parts[3]):
            raise LicenseFileError("The SERVER line has stray information.")
        if "INTERNET=" not in host_id and len(host_id) != 12:
            raise LicenseFileError("The Host ID on the SERVER line is not specified correctly.")

    def _daemon_line(self, line: str) -> None:
        if self.products_reached:
            raise LicenseFileError("The DAEMON line is listed after a product.")
        self.daemon_lines += 1
        if self.daemon_lines > 1:
            raise LicenseFileError("There is more than one DAEMON line.")

        port_count = len(_PORT_RE.findall(line))
        options_count = len(_OPTIONS_RE.findall(line))
        if "PORT=" in line:
            self.data.daemon_port_is_cnu_friendly = True

        if _TEMPLATE_FRAGMENT_RE.search(line):
            raise LicenseFileError(
                "The DAEMON line has content that is intended to be commented out."
            )
        if port_count > 1:
            raise LicenseFileError("More than one port number is specified for MLM.")
        if options_count > 1:
            raise LicenseFileError("The path to more than one options file is specified.")
        if options_count == 0:
            raise LicenseFileError(
                "The path to the options file is not specified. Use options= to specify it."
            )

        # Single-space split: an empty vendor token means doubled spaces.
        parts = line.split(" ")
        if len(parts) == 1:
            raise LicenseFileError(
                "The DAEMON line does not specify the vendor daemon (MLM) or its path."
            )
        vendor = parts[1]
        if not vendor.strip():
            raise LicenseFileError("There are too many spaces between DAEMON and MLM.")
        if vendor != VENDOR_DAEMON_NAME:
            raise LicenseFileError(
                'The vendor daemon is not specified as "MLM" exactly (must be uppercase).'
            )
        if len(parts) == 2:
            raise LicenseFileError("The path to the vendor daemon MLM is not specified.")
        if len(parts) == 3:
            raise LicenseFileError("The path to the options file is not specified.")

        self.data.daemon_line_has_port = port_count > 0

    def _increment_line(self, line: str) -> None:
        self.products_reached = True
        parts = line.split()

        product_name = _token(parts, 1)
        product_version = _as_float(_token(parts, 3))
        expiry_text = _token(parts, 4)
        raw_seats = _token(parts, 5)
        product_key = _token(parts, 6).strip()

        if len(product_key) > PRODUCT_KEY_MAX_LENGTH:
            raise LicenseFileError(
                f"The product key for {product_name} is greater than 20 characters long "
                "and is likely tampered with."
            )
        if len(product_key) < PRODUCT_KEY_MIN_LENGTH:
            raise LicenseFileError(
                f"The product key for {product_name} is shorter than 10 characters "
                "and is likely tampered with."
            )

        license_number = self._license_number(line, product_name, product_key)
        if license_number is None:
            # Bundling placeholder: its number is carried to the products that follow.
            return

        if raw_seats.lower() == "uncounted":
            raise LicenseFileError(
                "The license contains an Individual or Designated Computer license "
                f"(uncounted seats) on license {license_number}."
            )
        if not _is_integer(raw_seats):
            raise LicenseFileError(
                f'Could not read the seat count "{raw_seats}" for {product_name} '
                f"on license {license_number}."
            )
        seat_count = int(raw_seats)

        offering = classify_offering(
            _EntitlementFacts(
                line=line,
                full_text=self.text,
                product_name=product_name,
                product_key=product_key,
                seat_count=seat_count,
                in_bundle=self.in_bundle,
            )
        )

        expiration_date = parse_expiry(expiry_text)
        if expiration_date is None:
            raise LicenseFileError(
                f"Could not parse the expiration date for {product_name}: {expiry_text}"
            )
        if expiration_date < self.today:
            raise LicenseFileError(
                f"Product {product_name} on license {license_number} expired on {expiry_text}."
            )

        if offering is LicenseOffering.NAMED_USER and seat_count != 1 and not self.in_bundle:
            seat_count //= 2

        if (
            offering is LicenseOffering.CONCURRENT
            and seat_count == 0
            and license_number == MISLABELLED_CN_LICENSE_NUMBER
        ):
            if product_version <= 18 or ("Polyspace" in product_name and product_version <= 22):
                raise LicenseFileError(
                    f"License {license_number} contains a Designated Computer license "
                    "incorrectly labeled as Concurrent."
                )
            raise LicenseFileError(
                f"Product {product_name} on license {license_number} expired on {expiry_text}."
            )

        if seat_count < 1 and "asset_info=" in line:
            raise LicenseFileError(
                f"{product_name} on license {license_number} has a seat count of zero or less."
            )
        if seat_count == 0:
            raise LicenseFileError(
                f"The seat count for {product_name} on license {license_number} is zero. "
                "The license file may be tampered with."
            )

        self._check_collected(product_name, license_number, offering, product_key)

        self.data.products.append(
            LicenseProduct(
                product_name=product_name,
                seat_count=seat_count,
                product_key=product_key,
                license_offering=offering,
                license_number=license_number,
                expiration_date=expiration_date,
            )
        )

    def _license_number(self, line: str, product_name: str, product_key: str) -> str | None:
        if "asset_info=" in line:
            match = _ASSET_INFO_RE.search(line)
            return match.group(1) if match else ""
        if "SN=" in line:
            match = _SERIAL_NUMBER_RE.search(line)
            number = match.group(1) if match else ""
            if product_name == BUNDLING_PRODUCT_NAME:
                self.in_bundle = True
                self.bundle_license_number = number
                return None
            return number
        if self.in_bundle and BUNDLED_PRODUCT_MARKER in product_name:
            return self.bundle_license_number
        raise LicenseFileError(
            f"The license number was not found for product {product_name} with product key "
            f"{product_key}. The license file may be tampered with."
        )

    @staticmethod
    def _check_collected(
        product_name: str,
        license_number: str,
        offering: LicenseOffering,
        product_key: str,
    ) -> None:
        if not product_name.strip():
            raise LicenseFileError(f"A product name is blank on license {license_number}.")
        if not license_number.strip() or _INVALID_LICENSE_NUMBER_RE.match(license_number):
            if license_number == TRIAL_LICENSE_NUMBER:
                raise LicenseFileError(
                    f"Invalid license number detected for trial license of {product_name}. "
                    "Please regenerate."
                )
            raise LicenseFileError(
                f'Invalid license number "{license_number}" detected for {product_name}.'
            )
        if not product_key.strip():
            raise LicenseFileError(
                f"Could not detect a product key for {product_name} on license {license_number}."
            )
        if product_name == PARALLEL_SERVER_PRODUCT_NAME and offering is LicenseOffering.NAMED_USER:
            raise LicenseFileError(
                "MATLAB Parallel Server is registered as NNU, which is not possible. "
                "Please regenerate this license."
            )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def preprocess(raw_text: str, *, tab_replacement: str = "") -> list[str]:
    """Join backslash continuations, replace tabs and split into physical lines."""

    text = raw_text
    for continuation in _CONTINUATIONS:
        text = text.replace(continuation, "")
    text = text.replace("\t", tab_replacement)
    return _LINE_SPLIT_RE.split(text)


def parse_license_file(raw_text: str, *, today: date | None = None) -> LicenseParseResult:
    """Parse license-file text into ``LicenseData`` or a fatal error.

    ``today`` pins the expiry comparison; it defaults to the local date.
    """

    if not raw_text or not raw_text.strip():
        return _rejected("The license file is empty.", warnings=[])

    lines = preprocess(raw_text)
    text = "\n".join(lines)
    scanner = _LicenseScanner(text=text, today=today or date.today())

    try:
        for violated, message in _TEXT_GUARDS:
            if violated(text):
                raise LicenseFileError(message)
        license_data = scanner.scan(lines)
    except LicenseFileError as exc:
        return _rejected(exc.message, warnings=scanner.warnings, line=exc.line)

    logger.info(
        "license_file_parsed",
        products=len(license_data.products),
        server_lines=scanner.server_lines,
        warnings=len(scanner.warnings),
    )
    return LicenseParseResult(license_data=license_data, warnings=tuple(scanner.warnings))


def _rejected(message: str, *, warnings: list[str], line: int | None = None) -> LicenseParseResult:
    logger.info("license_file_rejected", reason=message, line=line)
    return LicenseParseResult(
        license_data=None,
        warnings=tuple(warnings),
        error=message,
        error_line=line,
    )


def _token(parts: list[str], index: int) -> str:
    return parts[index] if index < len(parts) else ""


def _is_integer(value: str) -> bool:
    try:
        int(value)
    except ValueError:
        return False
    return True


def _as_float(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return math.nan


__all__ = ["LicenseParseResult", "classify_offering", "parse_license_file", "preprocess"]
