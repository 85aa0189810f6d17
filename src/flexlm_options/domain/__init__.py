"""Domain records, directive ids and change-notification channels."""

from flexlm_options.domain.events import ChangeKind, DocumentChange, EventChannel
from flexlm_options.domain.ids import DirectiveIdFactory, validate_directive_id
from flexlm_options.domain.models import (
    CLIENT_DIRECTIVE_TYPES,
    GROUP_DIRECTIVE_TYPES,
    PRODUCT_DIRECTIVE_TYPES,
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
    LicenseData,
    LicenseOffering,
    LicenseProduct,
    Max,
    Reserve,
    SeatSummary,
    SeatSummaryEntry,
    Severity,
    ValidationResult,
    directive_to_dict,
)

__all__ = [
    "CLIENT_DIRECTIVE_TYPES",
    "ChangeKind",
    "ClientType",
    "Comment",
    "Directive",
    "DirectiveIdFactory",
    "DocumentChange",
    "EventChannel",
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
    "Reserve",
    "SeatSummary",
    "SeatSummaryEntry",
    "Severity",
    "ValidationResult",
    "directive_to_dict",
    "validate_directive_id",
]
