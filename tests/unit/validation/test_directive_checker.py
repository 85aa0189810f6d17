"""Unit tests for directive shape and cross-directive checks."""

from __future__ import annotations

import pytest

from builders import context, license_data, product
from flexlm_options.constants import IP_ADDRESS_RE
from flexlm_options.domain.models import (
    Exclude,
    Group,
    HostGroup,
    Include,
    IncludeAll,
    IncludeBorrow,
    Max,
    Reserve,
    Severity,
)
from flexlm_options.validation.directive_checker import check_directives


def _messages(directives, **kwargs):
    return [(r.severity, r.message) for r in check_directives(context(directives, **kwargs))]


@pytest.mark.unit
def test_clean_directives_produce_nothing() -> None:
    directives = [
        Group(group_name="eng", members=("alice",)),
        Include(product_name="MATLAB", client_type="GROUP", client_specified="eng"),
        IncludeAll(client_type="USER", client_specified="bob"),
    ]
    assert check_directives(context(directives)) == []


@pytest.mark.unit
def test_missing_values_and_invalid_client_type() -> None:
    results = check_directives(
        context(
            [
                Include(product_name="", client_type="user", client_specified=""),
                Group(group_name="", members=()),
            ]
        )
    )

    messages = [r.message for r in results]
    assert "INCLUDE line is missing a product name." in messages
    assert 'INCLUDE line has an invalid client type: "user".' in messages
    assert "INCLUDE line is missing the user value." in messages
    assert "GROUP is missing a name." in messages
    assert 'GROUP "" has no members.' in messages
    assert all(r.severity is Severity.ERROR for r in results)


@pytest.mark.unit
def test_invalid_counts() -> None:
    results = _messages(
        [
            Reserve(seat_count=0, product_name="MATLAB", client_type="USER", client_specified="a"),
            Max(max_seats=-1, product_name="MATLAB", client_type="USER", client_specified="a"),
        ]
    )
    assert results == [
        (Severity.ERROR, "RESERVE line has an invalid seat count: 0."),
        (Severity.ERROR, "MAX line has an invalid seat count: -1."),
    ]


@pytest.mark.unit
def test_max_above_license_total_warns() -> None:
    results = _messages(
        [Max(max_seats=6, product_name="MATLAB", client_type="USER", client_specified="a")],
        licensed=license_data(product(seat_count=5)),
    )
    assert results == [
        (
            Severity.WARNING,
            'MAX line specifies 6 seats for "MATLAB", but only 5 seats are available '
            "in the license file.",
        )
    ]


@pytest.mark.unit
def test_wildcard_and_ip_warnings() -> None:
    results = _messages(
        [
            Include(product_name="MATLAB", client_type="HOST", client_specified="lab*"),
            Include(product_name="MATLAB", client_type="INTERNET", client_specified="10.0.0.1"),
        ]
    )
    assert [severity for severity, _ in results] == [Severity.WARNING, Severity.WARNING]
    assert results[0][1].startswith("Wildcard used in INCLUDE line.")
    assert results[1][1].startswith("IP address used in INCLUDE line.")


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "flagged"),
    [("10.0.0.1", True), ("192.168.1.20", True), ("lab-pc", False), ("v2.5", False)],
)
def test_ip_warning_follows_shared_pattern(value: str, flagged: bool) -> None:
    results = _messages([Include(product_name="MATLAB", client_type="HOST", client_specified=value)])
    assert bool(IP_ADDRESS_RE.search(value)) is flagged
    assert any(m.startswith("IP address used") for _, m in results) is flagged


@pytest.mark.unit
def test_empty_host_group() -> None:
    results = check_directives(context([HostGroup(group_name="lab")]))
    assert [r.message for r in results] == ['HOST_GROUP "lab" has no members.']


@pytest.mark.unit
def test_duplicate_include_flags_second_occurrence() -> None:
    include = Include(product_name="MATLAB", client_type="USER", client_specified="alice")

    results = check_directives(context([include, include]))

    assert len(results) == 1
    assert results[0].directive_id == "dir-2"
    assert results[0].message.startswith('Duplicate INCLUDE: "MATLAB" for USER "alice"')


@pytest.mark.unit
def test_include_exclude_conflict_ignores_qualifiers() -> None:
    plain = [
        Include(product_name="MATLAB", client_type="USER", client_specified="alice"),
        Exclude(product_name="MATLAB", client_type="USER", client_specified="alice"),
    ]
    qualified_exclude = [
        Include(product_name="MATLAB", client_type="USER", client_specified="jdoe"),
        Exclude(
            product_name="MATLAB",
            license_number="123456",
            client_type="USER",
            client_specified="jdoe",
        ),
    ]
    other_client = [
        Include(product_name="MATLAB", client_type="USER", client_specified="alice"),
        Exclude(product_name="MATLAB", client_type="USER", client_specified="bob"),
    ]

    for directives in (plain, qualified_exclude):
        results = check_directives(context(directives))
        assert len(results) == 1
        assert results[0].severity is Severity.WARNING
        assert results[0].directive_id == "dir-1"
        assert "EXCLUDE takes priority" in results[0].message
    assert check_directives(context(other_client)) == []


@pytest.mark.unit
def test_borrow_requires_include() -> None:
    borrow = IncludeBorrow(product_name="SIMULINK", client_type="USER", client_specified="a")

    alone = check_directives(context([borrow]))
    paired = check_directives(
        context(
            [Include(product_name="SIMULINK", client_type="USER", client_specified="b"), borrow]
        )
    )

    assert len(alone) == 1
    assert "Borrowing requires an active INCLUDE" in alone[0].message
    assert paired == []


@pytest.mark.unit
def test_parallel_server_note() -> None:
    results = check_directives(
        context(
            [
                Include(
                    product_name="MATLAB_Distrib_Comp_Engine",
                    client_type="USER",
                    client_specified="clusteruser",
                )
            ]
        )
    )
    assert [r.severity for r in results] == [Severity.INFO]
    assert results[0].message.startswith("MATLAB Parallel Server")
