"""
flexlm-options — validator interface.

File: src/flexlm_options/validation/base.py

Purpose
- Define what every validator receives (``ValidationContext``) and returns
  (a list of ``ValidationResult``), plus the shared group-name resolution rule.

Functional requirements
- Validators are pure functions of the context; they never mutate the license
  data or the document.
- Group lookups are case-folded only when the document contains
  ``GROUPCASEINSENSITIVE ON``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, TypeVar

from flexlm_options.domain.models import (
    Directive,
    DirectiveBase,
    Group,
    GroupCaseInsensitive,
    HostGroup,
    LicenseData,
    Severity,
    ValidationResult,
)
from flexlm_options.parsing.reference import ProductCatalog, load_product_catalog

if TYPE_CHECKING:
    from flexlm_options.state.document import OptionsDocument

D = TypeVar("D", bound=DirectiveBase)


@dataclass(frozen=True, slots=True)
class GroupIndex:
    """Group and host-group members keyed by (possibly case-folded) name."""

    case_insensitive: bool
    groups: Mapping[str, tuple[str, ...]]
    host_groups: Mapping[str, tuple[str, ...]]

    @classmethod
    def from_directives(cls, directives: tuple[Directive, ...]) -> GroupIndex:
        case_insensitive = any(isinstance(d, GroupCaseInsensitive) for d in directives)

        def key(name: str) -> str:
            return name.lower() if case_insensitive else name

        # Later definitions of the same name win, as the seat ledger counts them.
        groups = {key(d.group_name): d.members for d in directives if isinstance(d, Group)}
        host_groups = {
            key(d.group_name): d.members for d in directives if isinstance(d, HostGroup)
        }
        return cls(case_insensitive=case_insensitive, groups=groups, host_groups=host_groups)

    def normalize(self, name: str) -> str:
        return name.lower() if self.case_insensitive else name

    def group_members(self, name: str) -> tuple[str, ...] | None:
        return self.groups.get(self.normalize(name))

    def host_group_members(self, name: str) -> tuple[str, ...] | None:
        return self.host_groups.get(self.normalize(name))


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Immutable inputs to one validation pass."""

    license_data: LicenseData
    directives: tuple[Directive, ...]
    reference_products: ProductCatalog
    today: date
    groups: GroupIndex = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "groups", GroupIndex.from_directives(self.directives))

    @classmethod
    def build(
        cls,
        license_data: LicenseData,
        document: OptionsDocument,
        *,
        reference_products: ProductCatalog | None = None,
        today: date | None = None,
    ) -> ValidationContext:
        return cls(
            license_data=license_data,
            directives=document.directives,
            reference_products=(
                reference_products if reference_products is not None else load_product_catalog()
            ),
            today=today or date.today(),
        )

    @property
    def license_loaded(self) -> bool:
        return self.license_data.is_loaded

    def of_type(self, kind: type[D]) -> tuple[D, ...]:
        return tuple(d for d in self.directives if isinstance(d, kind))


Validator = Callable[[ValidationContext], list[ValidationResult]]


def error(message: str, directive_id: str | None = None) -> ValidationResult:
    return ValidationResult(Severity.ERROR, message, directive_id)


def warning(message: str, directive_id: str | None = None) -> ValidationResult:
    return ValidationResult(Severity.WARNING, message, directive_id)


def info(message: str, directive_id: str | None = None) -> ValidationResult:
    return ValidationResult(Severity.INFO, message, directive_id)


def plural(count: int, singular: str, plural_form: str | None = None) -> str:
    """``seat``/``seats`` style word choice for ``count``."""

    return singular if count == 1 else (plural_form or f"{singular}s")


__all__ = [
    "GroupIndex",
    "ValidationContext",
    "Validator",
    "error",
    "info",
    "plural",
    "warning",
]
