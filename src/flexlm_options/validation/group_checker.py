"""GROUP / HOST_GROUP reference checks."""

from __future__ import annotations

from typing import Final

from flexlm_options.domain.models import ClientTargetFields, ClientType, ValidationResult
from flexlm_options.validation.base import ValidationContext, error, info

_CASE_SENSITIVITY_NOTE: Final[str] = (
    "Case sensitivity is enabled for GROUPs and HOST_GROUPs. "
    "Add GROUPCASEINSENSITIVE ON to disable."
)


def check_groups(context: ValidationContext) -> list[ValidationResult]:
    """Every GROUP / HOST_GROUP a directive targets must be defined with that kind."""

    results: list[ValidationResult] = []
    groups = context.groups

    for directive in context.of_type(ClientTargetFields):
        name = directive.client_specified
        if not name:
            continue
        if directive.client_type == ClientType.GROUP and groups.group_members(name) is None:
            results.append(
                error(
                    f'GROUP "{name}" referenced in {directive.keyword} does not exist. '
                    "GROUP and HOST_GROUP are separate.",
                    directive.directive_id,
                )
            )
        elif (
            directive.client_type == ClientType.HOST_GROUP
            and groups.host_group_members(name) is None
        ):
            results.append(
                error(
                    f'HOST_GROUP "{name}" referenced in {directive.keyword} does not exist. '
                    "HOST_GROUP and GROUP are separate.",
                    directive.directive_id,
                )
            )

    if not groups.case_insensitive and (groups.groups or groups.host_groups):
        results.append(info(_CASE_SENSITIVITY_NOTE))

    return results


__all__ = ["check_groups"]
