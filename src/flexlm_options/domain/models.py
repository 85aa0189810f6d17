"""
flexlm-options — domain models.

File: src/flexlm_options/domain/models.py

Purpose
- Typed records for license entitlements, options-file directives, validation
  findings and seat-allocation summaries.

What is included in this file
- ``LicenseOffering`` / ``ClientType`` enums with their wire spellings.
- ``LicenseProduct`` and ``LicenseData`` with the query helpers the validators use.
- One frozen dataclass per directive kind plus the exhaustive ``Directive`` union.
- ``ValidationResult``, ``SeatSummaryEntry`` and ``SeatSummary``.

Functional requirements
- Directives are immutable; edits go through ``dataclasses.replace``.
- ``LicenseProduct.original_seat_count`` is fixed at creation.

Non-functional requirements
- Pure data, no I/O and no logging.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, fields
from datetime import date
from enum import StrEnum
from typing import ClassVar, TypeAlias


class LicenseOffering(StrEnum):
    """Concurrency model of a license entitlement, keyed by its license-file spelling."""

    CONCURRENT = "lo=CN"
    NAMED_USER = "NNU"
    CONCURRENT_USER = "CNU"
    DESIGNATED_COMPUTER = "lo=DC"
    INDIVIDUAL = "lo=IN"

    @property
    def label(self) -> str:
        return _OFFERING_LABELS[self]


_OFFERING_LABELS: dict[LicenseOffering, str] = {
    LicenseOffering.CONCURRENT: "CN",
    LicenseOffering.NAMED_USER: "NNU",
    LicenseOffering.CONCURRENT_USER: "CNU",
    LicenseOffering.DESIGNATED_COMPUTER: "DC",
    LicenseOffering.INDIVIDUAL: "IN",
}


class ClientType(StrEnum):
    """Who a directive targets."""

    USER = "USER"
    GROUP = "GROUP"
    HOST = "HOST"
    HOST_GROUP = "HOST_GROUP"
    DISPLAY = "DISPLAY"
    PROJECT = "PROJECT"
    INTERNET = "INTERNET"

    @classmethod
    def parse(cls, value: str) -> ClientType | None:
        """Return the matching member for an exact (case-sensitive) spelling."""

        try:
            return cls(value)
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# License file model
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class LicenseProduct:
    """One INCREMENT entitlement.

    ``seat_count`` is the working value (named-user counts are already halved);
    ``original_seat_count`` is captured once in ``__post_init__`` and exposed
    read-only so the seat calculator can always reseed its ledger from it.
    """

    product_name: str
    seat_count: int
    product_key: str
    license_offering: LicenseOffering
    license_number: str
    expiration_date: date
    _original_seat_count: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._original_seat_count = self.seat_count

    @property
    def original_seat_count(self) -> int:
        return self._original_seat_count

    def is_expired(self, today: date) -> bool:
        return self.expiration_date < today

    def to_dict(self) -> dict[str, object]:
        return {
            "product_name": self.product_name,
            "seat_count": self.seat_count,
            "original_seat_count": self.original_seat_count,
            "product_key": self.product_key,
            "license_offering": self.license_offering.label,
            "license_number": self.license_number,
            "expiration_date": self.expiration_date.isoformat(),
        }


@dataclass(slots=True)
class LicenseData:
    """Parsed license file: ordered entitlements plus port-related flags."""

    products: list[LicenseProduct] = field(default_factory=list)
    server_line_has_port: bool = True
    daemon_line_has_port: bool = True
    daemon_port_is_cnu_friendly: bool = False
    is_loaded: bool = False

    def product_names(self) -> tuple[str, ...]:
        """Sorted distinct product names."""

        return tuple(sorted({product.product_name for product in self.products}))

    def products_named(self, name: str) -> tuple[LicenseProduct, ...]:
        wanted = name.casefold()
        return tuple(p for p in self.products if p.product_name.casefold() == wanted)

    def total_seats(self, name: str) -> int:
        """Sum of original seat counts across every entry of ``name``."""

        return sum(product.original_seat_count for product in self.products_named(name))

    def license_numbers(self) -> tuple[str, ...]:
        return tuple(sorted({product.license_number for product in self.products}))

    def license_numbers_for(self, name: str) -> tuple[str, ...]:
        return tuple(sorted({product.license_number for product in self.products_named(name)}))

    def product_keys_for(self, name: str) -> tuple[str, ...]:
        return tuple(product.product_key for product in self.products_named(name))

    def has_named_user_products(self) -> bool:
        return any(p.license_offering is LicenseOffering.NAMED_USER for p in self.products)

    def is_named_user_only(self) -> bool:
        return bool(self.products) and all(
            p.license_offering is LicenseOffering.NAMED_USER for p in self.products
        )

    def has_product(self, name: str) -> bool:
        return bool(self.products_named(name))


# ---------------------------------------------------------------------------
# Options file directives
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class DirectiveBase:
    """Fields every directive carries."""

    keyword: ClassVar[str] = ""

    directive_id: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class ClientTargetFields(DirectiveBase):
    """Fields of directives that target a USER / GROUP / HOST / ... value."""

    client_type: str
    client_specified: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ProductTargetFields(ClientTargetFields):
    """Client-target fields narrowed to a product, optionally a license or product key."""

    product_name: str
    license_number: str = ""
    product_key: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class Include(ProductTargetFields):
    keyword: ClassVar[str] = "INCLUDE"


@dataclass(frozen=True, slots=True, kw_only=True)
class Exclude(ProductTargetFields):
    keyword: ClassVar[str] = "EXCLUDE"


@dataclass(frozen=True, slots=True, kw_only=True)
class IncludeBorrow(ProductTargetFields):
    keyword: ClassVar[str] = "INCLUDE_BORROW"


@dataclass(frozen=True, slots=True, kw_only=True)
class ExcludeBorrow(ProductTargetFields):
    keyword: ClassVar[str] = "EXCLUDE_BORROW"


@dataclass(frozen=True, slots=True, kw_only=True)
class IncludeAll(ClientTargetFields):
    keyword: ClassVar[str] = "INCLUDEALL"


@dataclass(frozen=True, slots=True, kw_only=True)
class ExcludeAll(ClientTargetFields):
    keyword: ClassVar[str] = "EXCLUDEALL"


@dataclass(frozen=True, slots=True, kw_only=True)
class Reserve(ProductTargetFields):
    keyword: ClassVar[str] = "RESERVE"

    seat_count: int


@dataclass(frozen=True, slots=True, kw_only=True)
class Max(ClientTargetFields):
    keyword: ClassVar[str] = "MAX"

    max_seats: int
    product_name: str


@dataclass(frozen=True, slots=True, kw_only=True)
class Group(DirectiveBase):
    keyword: ClassVar[str] = "GROUP"

    group_name: str
    members: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class HostGroup(DirectiveBase):
    keyword: ClassVar[str] = "HOST_GROUP"

    group_name: str
    members: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class GroupCaseInsensitive(DirectiveBase):
    keyword: ClassVar[str] = "GROUPCASEINSENSITIVE"


@dataclass(frozen=True, slots=True, kw_only=True)
class Comment(DirectiveBase):
    keyword: ClassVar[str] = "#"

    text: str = ""


Directive: TypeAlias = (
    Include
    | Exclude
    | IncludeBorrow
    | ExcludeBorrow
    | IncludeAll
    | ExcludeAll
    | Reserve
    | Max
    | Group
    | HostGroup
    | GroupCaseInsensitive
    | Comment
)

# Directives that name a product (and therefore a reference-table entry).
PRODUCT_DIRECTIVE_TYPES: tuple[type[Directive], ...] = (
    Include,
    Exclude,
    IncludeBorrow,
    ExcludeBorrow,
    Reserve,
    Max,
)

# Directives that name a client type / client value pair.
CLIENT_DIRECTIVE_TYPES: tuple[type[Directive], ...] = (
    *PRODUCT_DIRECTIVE_TYPES,
    IncludeAll,
    ExcludeAll,
)

GROUP_DIRECTIVE_TYPES: tuple[type[Directive], ...] = (Group, HostGroup)


def directive_to_dict(directive: Directive) -> dict[str, object]:
    """Flat JSON-friendly view of a directive, ``type`` holding its keyword."""

    payload: dict[str, object] = {"type": directive.keyword}
    for item in fields(directive):
        value = getattr(directive, item.name)
        payload[item.name] = list(value) if isinstance(value, tuple) else value
    return payload


# ---------------------------------------------------------------------------
# Validation output
# ---------------------------------------------------------------------------


class Severity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SUGGESTION = "suggestion"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """One finding produced by a validator or the seat calculator."""

    severity: Severity
    message: str
    directive_id: str | None = None
    suggested_fix: tuple[Directive, ...] = ()

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "severity": self.severity.value,
            "message": self.message,
            "directive_id": self.directive_id,
        }
        if self.suggested_fix:
            payload["suggested_fix"] = [directive_to_dict(item) for item in self.suggested_fix]
        return payload


@dataclass(frozen=True, slots=True)
class SeatSummaryEntry:
    """Allocation state of one ledger entry (product + license number)."""

    product_name: str
    license_number: str
    license_offering: LicenseOffering
    product_key: str
    total: int
    remaining: int
    contributing_directive_ids: tuple[str, ...] = ()

    @property
    def used(self) -> int:
        return self.total - self.remaining

    def to_dict(self) -> dict[str, object]:
        return {
            "product_name": self.product_name,
            "license_number": self.license_number,
            "license_offering": self.license_offering.label,
            "product_key": self.product_key,
            "total": self.total,
            "remaining": self.remaining,
            "used": self.used,
            "contributing_directive_ids": list(self.contributing_directive_ids),
        }


class SeatSummary:
    """Ordered seat summary entries with lookup by ``(product, license number)``."""

    __slots__ = ("_entries", "_index")

    def __init__(self, entries: Iterable[SeatSummaryEntry] = ()) -> None:
        self._entries = tuple(entries)
        self._index: Mapping[tuple[str, str], SeatSummaryEntry] = {
            (entry.product_name, entry.license_number): entry for entry in self._entries
        }

    def __iter__(self) -> Iterator[SeatSummaryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    @property
    def entries(self) -> tuple[SeatSummaryEntry, ...]:
        return self._entries

    def get(self, product_name: str, license_number: str) -> SeatSummaryEntry | None:
        return self._index.get((product_name, license_number))

    def for_product(self, product_name: str) -> tuple[SeatSummaryEntry, ...]:
        wanted = product_name.casefold()
        return tuple(e for e in self._entries if e.product_name.casefold() == wanted)

    def to_dict(self) -> dict[str, object]:
        return {
            f"{entry.product_name}|{entry.license_number}": entry.to_dict()
            for entry in self._entries
        }


__all__ = [
    "CLIENT_DIRECTIVE_TYPES",
    "ClientTargetFields",
    "ClientType",
    "Comment",
    "Directive",
    "DirectiveBase",
    "Exclude",
    "ExcludeAll",
    "ExcludeBorrow",
    "GROUP_DIRECTIVE_TYPES",
    "Group",
    "GroupCaseInsensitive",
    "HostGroup",
    "Include",
    "IncludeAll",
    "IncludeBorrow",
    "LicenseData",
    "LicenseOffering",
    "LicenseProduct",
    "Max",
    "PRODUCT_DIRECTIVE_TYPES",
    "ProductTargetFields",
    "Reserve",
    "SeatSummary",
    "SeatSummaryEntry",
    "Severity",
    "ValidationResult",
    "directive_to_dict",
]
