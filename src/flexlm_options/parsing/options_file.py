"""
flexlm-options — options file parser.

File: src/flexlm_options/parsing/options_file.py

Purpose
- Turn the text of a FlexLM options file (``.opt``) into an ``OptionsDocument``
  or a single fatal, user-facing error.

What is included in this file
- The product qualifier grammar (plain, colon-qualified and quoted forms).
- Per-keyword line handlers and multi-line GROUP / HOST_GROUP continuation.
- Soft warnings for wildcard and IP-address client values.

Functional requirements
- Same-named GROUP / HOST_GROUP definitions merge in place at the first occurrence.
- Comments and blank lines do not end a group continuation; any directive does.
- Directives that name a product are checked against the reference table.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Final

import structlog

from flexlm_options.constants import IP_ADDRESS_RE, TRIAL_LICENSE_NUMBER
from flexlm_options.domain.models import (
    ClientType,
    Comment,
    Directive,
    Exclude,
    ExcludeAll,
    ExcludeBorrow,
    Group,
    GroupCaseInsensitive,
    HostGroup,
    Include,
    IncludeAll,
    IncludeBorrow,
    Max,
    Reserve,
)
from flexlm_options.parsing.errors import OptionsFileError
from flexlm_options.parsing.license_file import preprocess
from flexlm_options.parsing.reference import ProductCatalog, load_product_catalog
from flexlm_options.state.document import OptionsDocument

logger = structlog.get_logger(__name__)

_CONTENT_MARKERS: Final[tuple[str, ...]] = (
    "INCLUDE",
    "EXCLUDE",
    "RESERVE",
    "MAX",
    "LINGER",
    "LOG",
    "TIMEOUT",
    "GROUP",
)

# Recognised FlexLM keywords that carry nothing this tool models.
IGNORED_KEYWORDS: Final[frozenset[str]] = frozenset(
    {
        "TIMEOUTALL",
        "DEBUGLOG",
        "LINGER",
        "MAX_OVERDRAFT",
        "REPORTLOG",
        "TIMEOUT",
        "BORROW",
        "NOLOG",
        "DEFAULT",
        "HIDDEN",
        "MAX_BORROW_HOURS",
        "BORROW_LOWWATER",
    }
)

_ProductDirective = type[Include] | type[Exclude] | type[IncludeBorrow] | type[ExcludeBorrow]
_PRODUCT_KEYWORDS: Final[dict[str, _ProductDirective]] = {
    "INCLUDE": Include,
    "EXCLUDE": Exclude,
    "INCLUDE_BORROW": IncludeBorrow,
    "EXCLUDE_BORROW": ExcludeBorrow,
}
_ALL_KEYWORDS: Final[dict[str, type[IncludeAll] | type[ExcludeAll]]] = {
    "INCLUDEALL": IncludeAll,
    "EXCLUDEALL": ExcludeAll,
}


@dataclass(frozen=True, slots=True)
class OptionsParseResult:
    """Outcome of ``parse_options_file``: a document or an error, plus warnings."""

    document: OptionsDocument | None
    warnings: tuple[str, ...] = ()
    error: str | None = None
    error_line: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.document is not None

    def unwrap(self) -> OptionsDocument:
        """Return the document or raise ``OptionsFileError`` with the recorded error."""

        if self.document is None or self.error is not None:
            raise OptionsFileError(self.error or "options file was not parsed", line=self.error_line)
        return self.document


@dataclass(frozen=True, slots=True)
class ProductQualifier:
    """Product token(s) of a directive, with where the client type starts."""

    product_name: str
    license_number: str = ""
    product_key: str = ""
    next_index: int = 0


def parse_product_qualifier(parts: list[str], start: int) -> ProductQualifier:
    """Decode the product field of a directive starting at ``parts[start]``.

    Accepted spellings::

        Product
        Product:asset_info=NNNN    Product:key=XXXX
        "Product asset_info=NNNN"  "Product key=XXXX"
        "Product:asset_info=NNNN"  "Product"
    """

    token = parts[start]
    next_index = start + 1
    license_number = ""
    product_key = ""

    if '"' in token:
        fully_quoted = len(token) > 1 and token.startswith('"') and token.endswith('"')
        product_name = token.replace('"', "")
        if ":" in product_name:
            product_name, license_number, product_key = _split_colon_qualifier(product_name)
        elif not fully_quoted:
            qualifier = parts[start + 1] if start + 1 < len(parts) else ""
            lowered = qualifier.lower()
            if "key=" in lowered:
                product_key = _strip_marker(qualifier, "key=")
            elif "asset_info=" in lowered:
                license_number = _strip_marker(qualifier, "asset_info=")
            next_index = start + 2
    elif ":" in token:
        product_name, license_number, product_key = _split_colon_qualifier(token)
    else:
        product_name = token

    license_number = license_number.replace('"', "")
    product_key = product_key.replace('"', "")
    if license_number == TRIAL_LICENSE_NUMBER:
        raise OptionsFileError(
            "A trial license number was incorrectly specified as DEMO. "
            "Use the full trial license number."
        )
    return ProductQualifier(
        product_name=product_name,
        license_number=license_number,
        product_key=product_key,
        next_index=next_index,
    )


def _split_colon_qualifier(raw_name: str) -> tuple[str, str, str]:
    pieces = raw_name.split(":")
    if len(pieces) != 2:
        raise OptionsFileError(f'Stray colon in product name: "{raw_name}".')
    product_name, qualifier = pieces
    if "key=" in qualifier.lower():
        return product_name, "", _strip_marker(qualifier, "key=")
    return product_name, _strip_marker(qualifier, "asset_info="), ""


def _strip_marker(value: str, marker: str) -> str:
    return re.sub(re.escape(marker), "", value, flags=re.IGNORECASE).replace('"', "")


# ---------------------------------------------------------------------------
# Line scanner
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _OptionsScanner:
    catalog: ProductCatalog
    directives: list[Directive] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    group_positions: dict[tuple[str, str], int] = field(default_factory=dict)
    open_group: tuple[str, str] | None = None

    def scan(self, lines: list[str]) -> list[Directive]:
        handlers: dict[str, Callable[[str, list[str]], None]] = {
            **{keyword: self._product_line for keyword in _PRODUCT_KEYWORDS},
            **{keyword: self._all_line for keyword in _ALL_KEYWORDS},
            "MAX": self._max_line,
            "RESERVE": self._reserve_line,
            "GROUP": self._group_line,
            "HOST_GROUP": self._group_line,
            "GROUPCASEINSENSITIVE": self._case_line,
        }
        for number, line in enumerate(lines, start=1):
            trimmed = line.strip()
            parts = trimmed.split()
            try:
                if not trimmed:
                    continue
                if trimmed.startswith("#"):
                    self.directives.append(Comment(text=trimmed[1:].strip()))
                    continue
                keyword = parts[0]
                handler = handlers.get(keyword)
                if handler is not None:
                    handler(line, parts)
                elif keyword in IGNORED_KEYWORDS:
                    self.open_group = None
                elif self.open_group is not None:
                    self._continue_group(line)
                else:
                    raise OptionsFileError(f'Unrecognized option line: "{line}". Check for typos.')
            except OptionsFileError as exc:
                if exc.line is None:
                    exc.line = number
                raise
        return self.directives

    # -- product directives -------------------------------------------------

    def _product_line(self, line: str, parts: list[str]) -> None:
        self.open_group = None
        keyword = parts[0]
        if len(parts) < 4:
            raise OptionsFileError(
                f'Incorrectly formatted {keyword} line (missing information): "{line}"'
            )
        _reject_stray_quotes(keyword, line)
        qualifier = self._qualifier(parts, 1, line)
        client_type, client_specified = self._client(keyword, line, parts, qualifier.next_index)
        self._require_known_product(keyword, qualifier.product_name, line)
        self.directives.append(
            _PRODUCT_KEYWORDS[keyword](
                product_name=qualifier.product_name,
                license_number=qualifier.license_number,
                product_key=qualifier.product_key,
                client_type=client_type,
                client_specified=client_specified,
            )
        )

    def _all_line(self, line: str, parts: list[str]) -> None:
        self.open_group = None
        keyword = parts[0]
        if len(parts) < 3:
            raise OptionsFileError(
                f'Incorrectly formatted {keyword} line (missing information): "{line}"'
            )
        client_type, client_specified = self._client(keyword, line, parts, 1)
        self.directives.append(
            _ALL_KEYWORDS[keyword](client_type=client_type, client_specified=client_specified)
        )

    def _max_line(self, line: str, parts: list[str]) -> None:
        self.open_group = None
        if len(parts) < 5:
            raise OptionsFileError(
                f'Incorrectly formatted MAX line (missing information): "{line}". '
                "Expected: MAX <number_of_seats> <product_name> <client_type> <client_specified>. "
                "Example: MAX 2 MATLAB USER jsmith"
            )
        seats = _positive_int(parts[1])
        if seats is None:
            raise OptionsFileError(f'Invalid seat count on MAX line: "{line}"')
        product_name = parts[2].replace('"', "")
        client_type, client_specified = self._client("MAX", line, parts, 3)
        self._require_known_product("MAX", product_name, line)
        self.directives.append(
            Max(
                max_seats=seats,
                product_name=product_name,
                client_type=client_type,
                client_specified=client_specified,
            )
        )

    def _reserve_line(self, line: str, parts: list[str]) -> None:
        self.open_group = None
        if len(parts) < 5:
            raise OptionsFileError(
                f'Incorrectly formatted RESERVE line (missing information): "{line}"'
            )
        _reject_stray_quotes("RESERVE", line)
        seats = _positive_int(parts[1])
        if seats is None:
            raise OptionsFileError(
                f'Invalid or zero/negative seat count on RESERVE line: "{line}"'
            )
        qualifier = self._qualifier(parts, 2, line)
        client_type, client_specified = self._client("RESERVE", line, parts, qualifier.next_index)
        self._require_known_product("RESERVE", qualifier.product_name, line)
        self.directives.append(
            Reserve(
                seat_count=seats,
                product_name=qualifier.product_name,
                license_number=qualifier.license_number,
                product_key=qualifier.product_key,
                client_type=client_type,
                client_specified=client_specified,
            )
        )

    # -- groups ----------------------------------------------------------------

    def _group_line(self, line: str, parts: list[str]) -> None:
        keyword = parts[0]
        if len(parts) < 2:
            raise OptionsFileError(
                f'Incorrectly formatted {keyword} line (missing information): "{line}"'
            )
        group_name = parts[1]
        members = parts[2:]
        if keyword == HostGroup.keyword:
            members = [member.replace('"', "") for member in members]
            members = [member for member in members if member]
        key = (keyword, group_name)

        position = self.group_positions.get(key)
        if position is None:
            factory = HostGroup if keyword == HostGroup.keyword else Group
            self.group_positions[key] = len(self.directives)
            self.directives.append(factory(group_name=group_name, members=tuple(members)))
        else:
            self._extend_group(key, members)
        self.open_group = key
        self._warn_members(keyword, group_name, members)

    def _continue_group(self, line: str) -> None:
        assert self.open_group is not None
        keyword, group_name = self.open_group
        if keyword == Group.keyword:
            members = line.replace("\\", " ").split()
        else:
            members = [member.replace('"', "") for member in line.split()]
        self._extend_group(self.open_group, members)
        self._warn_members(keyword, group_name, members)

    def _extend_group(self, key: tuple[str, str], members: list[str]) -> None:
        position = self.group_positions[key]
        existing = self.directives[position]
        assert isinstance(existing, (Group, HostGroup))
        self.directives[position] = replace(existing, members=(*existing.members, *members))

    def _case_line(self, line: str, parts: list[str]) -> None:
        self.open_group = None
        if len(parts) >= 2 and parts[1].upper() == "ON":
            self.directives.append(GroupCaseInsensitive())

    # -- shared ----------------------------------------------------------------

    def _qualifier(self, parts: list[str], start: int, line: str) -> ProductQualifier:
        try:
            return parse_product_qualifier(parts, start)
        except OptionsFileError as exc:
            raise OptionsFileError(f'{exc.message} Line: "{line}"') from exc

    def _client(self, keyword: str, line: str, parts: list[str], index: int) -> tuple[str, str]:
        raw_type = parts[index] if index < len(parts) else ""
        client_type = ClientType.parse(raw_type)
        if client_type is None:
            raise OptionsFileError(
                f'Invalid client type "{raw_type or "(empty)"}" on {keyword} line: "{line}"'
            )
        client_specified = " ".join(parts[index + 1 :]).rstrip().replace('"', "")
        if not client_specified.strip():
            raise OptionsFileError(f'No {client_type} specified on {keyword} line: "{line}"')
        if "*" in client_specified:
            self.warnings.append(f'Wildcard used in {keyword} line: "{line}"')
        if IP_ADDRESS_RE.search(client_specified):
            self.warnings.append(f'IP address used in {keyword} line: "{line}"')
        return client_type, client_specified

    def _require_known_product(self, keyword: str, product_name: str, line: str) -> None:
        if product_name not in self.catalog:
            raise OptionsFileError(
                f'Unknown product "{product_name}" on {keyword} line. Ensure it matches the '
                f'INCREMENT line in the license file exactly. Line: "{line}"'
            )

    def _warn_members(self, keyword: str, group_name: str, members: list[str]) -> None:
        for member in members:
            if "*" in member:
                self.warnings.append(f'Wildcard used in {keyword} "{group_name}": "{member}"')
            if IP_ADDRESS_RE.search(member):
                self.warnings.append(f'IP address used in {keyword} "{group_name}": "{member}"')


def _reject_stray_quotes(keyword: str, line: str) -> None:
    if line.count('"') % 2:
        raise OptionsFileError(f'Stray quotation mark on {keyword} line: "{line}"')


def _positive_int(value: str) -> int | None:
    try:
        parsed = int(value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_options_file(
    raw_text: str,
    *,
    reference_products: ProductCatalog | None = None,
) -> OptionsParseResult:
    """Parse options-file text into an ``OptionsDocument`` or a fatal error.

    ``reference_products`` defaults to the bundled product table.
    """

    if not raw_text or not raw_text.strip():
        return _rejected("The options file is empty.", warnings=[])

    lines = preprocess(raw_text, tab_replacement=" ")
    text = "\n".join(lines)
    if not _looks_like_options(text, lines):
        return _rejected("The file does not appear to be a valid options file.", warnings=[])

    catalog = reference_products if reference_products is not None else load_product_catalog()
    scanner = _OptionsScanner(catalog=catalog)
    try:
        directives = scanner.scan(lines)
    except OptionsFileError as exc:
        return _rejected(exc.message, warnings=scanner.warnings, line=exc.line)
    if not directives:
        return _rejected(
            "The options file only contains keywords that are not edited here.",
            warnings=scanner.warnings,
        )

    document = OptionsDocument()
    document.replace_all(directives)
    logger.info(
        "options_file_parsed",
        directives=len(document),
        groups=len(document.groups()),
        host_groups=len(document.host_groups()),
        warnings=len(scanner.warnings),
    )
    return OptionsParseResult(document=document, warnings=tuple(scanner.warnings))


def _looks_like_options(text: str, lines: list[str]) -> bool:
    if any(marker in text for marker in _CONTENT_MARKERS):
        return True
    for line in lines:
        trimmed = line.strip()
        if trimmed.startswith("#") or trimmed.split(" ", 1)[0] in IGNORED_KEYWORDS:
            return True
    return False


def _rejected(message: str, *, warnings: list[str], line: int | None = None) -> OptionsParseResult:
    logger.info("options_file_rejected", reason=message, line=line)
    return OptionsParseResult(
        document=None,
        warnings=tuple(warnings),
        error=message,
        error_line=line,
    )


__all__ = [
    "IGNORED_KEYWORDS",
    "OptionsParseResult",
    "ProductQualifier",
    "parse_options_file",
    "parse_product_qualifier",
]
