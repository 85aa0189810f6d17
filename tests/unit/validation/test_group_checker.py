"""Unit tests for GROUP / HOST_GROUP reference checks."""

from __future__ import annotations

import pytest

from builders import context
from flexlm_options.domain.models import (
    ExcludeAll,
    Group,
    GroupCaseInsensitive,
    HostGroup,
    Include,
    Severity,
)
from flexlm_options.validation.base import GroupIndex
from flexlm_options.validation.group_checker import check_groups


@pytest.mark.unit
def test_undefined_group_is_an_error_on_the_directive() -> None:
    results = check_groups(
        context([Include(product_name="MATLAB", client_type="GROUP", client_specified="eng")])
    )

    assert len(results) == 1
    assert results[0].severity is Severity.ERROR
    assert results[0].directive_id == "dir-1"
    assert results[0].message == (
        'GROUP "eng" referenced in INCLUDE does not exist. GROUP and HOST_GROUP are separate.'
    )


@pytest.mark.unit
def test_group_and_host_group_are_separate_namespaces() -> None:
    results = check_groups(
        context(
            [
                GroupCaseInsensitive(),
                Group(group_name="lab", members=("alice",)),
                ExcludeAll(client_type="HOST_GROUP", client_specified="lab"),
            ]
        )
    )

    assert [r.directive_id for r in results] == ["dir-3"]
    assert results[0].message.startswith('HOST_GROUP "lab" referenced in EXCLUDEALL')


@pytest.mark.unit
def test_case_sensitive_lookup_adds_note() -> None:
    results = check_groups(
        context(
            [
                Group(group_name="Eng", members=("alice",)),
                Include(product_name="MATLAB", client_type="GROUP", client_specified="eng"),
            ]
        )
    )

    assert [r.severity for r in results] == [Severity.ERROR, Severity.INFO]
    assert results[1].directive_id is None
    assert "GROUPCASEINSENSITIVE ON" in results[1].message


@pytest.mark.unit
def test_case_insensitive_lookup_resolves() -> None:
    results = check_groups(
        context(
            [
                GroupCaseInsensitive(),
                Group(group_name="Eng", members=("alice",)),
                HostGroup(group_name="LAB", members=("pc1",)),
                Include(product_name="MATLAB", client_type="GROUP", client_specified="eng"),
                Include(product_name="MATLAB", client_type="HOST_GROUP", client_specified="lab"),
            ]
        )
    )

    assert results == []


@pytest.mark.unit
def test_group_index_later_definition_wins() -> None:
    index = GroupIndex.from_directives(
        (
            Group(group_name="eng", members=("a",)),
            Group(group_name="eng", members=("b", "c")),
        )
    )

    assert index.group_members("eng") == ("b", "c")
    assert index.group_members("ENG") is None
    assert index.host_group_members("eng") is None
