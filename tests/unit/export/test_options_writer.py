"""Unit tests for options file export."""

from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from flexlm_options.domain.models import (
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
from flexlm_options.export.options_writer import (
    directive_to_line,
    export_options,
    format_product_part,
    write_options_file,
)
from flexlm_options.parsing.options_file import parse_options_file
from flexlm_options.state.document import OptionsDocument


@pytest.mark.unit
@pytest.mark.parametrize(
    ("directive", "line"),
    [
        (
            Include(product_name="MATLAB", client_type="USER", client_specified="alice"),
            "INCLUDE MATLAB USER alice",
        ),
        (
            Exclude(
                product_name="MATLAB",
                license_number="123456",
                client_type="GROUP",
                client_specified="eng",
            ),
            'EXCLUDE "MATLAB asset_info=123456" GROUP eng',
        ),
        (
            IncludeBorrow(
                product_name="SIMULINK",
                product_key="ABCDEFghij12",
                client_type="HOST",
                client_specified="pc1",
            ),
            'INCLUDE_BORROW "SIMULINK key=ABCDEFghij12" HOST pc1',
        ),
        (
            ExcludeBorrow(product_name="MATLAB", client_type="USER", client_specified="bob"),
            "EXCLUDE_BORROW MATLAB USER bob",
        ),
        (IncludeAll(client_type="USER", client_specified="alice"), "INCLUDEALL USER alice"),
        (ExcludeAll(client_type="HOST_GROUP", client_specified="lab"), "EXCLUDEALL HOST_GROUP lab"),
        (
            Reserve(
                seat_count=2,
                product_name="MATLAB",
                license_number="9",
                client_type="USER",
                client_specified="alice",
            ),
            'RESERVE 2 "MATLAB asset_info=9" USER alice',
        ),
        (
            Max(max_seats=3, product_name="MATLAB", client_type="USER", client_specified="alice"),
            "MAX 3 MATLAB USER alice",
        ),
        (Group(group_name="eng", members=("alice", "bob")), "GROUP eng alice bob"),
        (HostGroup(group_name="lab", members=("pc1",)), "HOST_GROUP lab pc1"),
        (GroupCaseInsensitive(), "GROUPCASEINSENSITIVE ON"),
        (Comment(text="managed by IT"), "# managed by IT"),
        (Comment(text=""), "#"),
    ],
)
def test_directive_to_line(directive: Directive, line: str) -> None:
    assert directive_to_line(directive) == line


@pytest.mark.unit
def test_license_number_wins_over_product_key() -> None:
    assert format_product_part("MATLAB", "123", "KEY") == '"MATLAB asset_info=123"'
    assert format_product_part("MATLAB") == "MATLAB"


@pytest.mark.unit
def test_export_is_newline_terminated_in_document_order() -> None:
    document = OptionsDocument(
        [
            Comment(text="top"),
            Include(product_name="MATLAB", client_type="USER", client_specified="alice"),
        ]
    )

    assert export_options(document) == "# top\nINCLUDE MATLAB USER alice\n"
    assert export_options([]) == "\n"


@pytest.mark.unit
def test_write_options_file(tmp_path: Path) -> None:
    target = write_options_file(
        [IncludeAll(client_type="USER", client_specified="alice")], tmp_path / "MLM.opt"
    )

    assert target.read_text(encoding="utf-8") == "INCLUDEALL USER alice\n"


@pytest.mark.unit
def test_parse_export_is_idempotent_on_real_text() -> None:
    text = (
        "# header\n"
        "GROUPCASEINSENSITIVE ON\n"
        "GROUP eng alice\n"
        "   bob\n"
        "INCLUDE MATLAB:asset_info=123456 GROUP eng\n"
        'RESERVE 1 "SIMULINK" USER carol\n'
        "TIMEOUTALL 3600\n"
        "MAX 1 MATLAB USER alice\n"
    )

    once = export_options(parse_options_file(text).unwrap())
    twice = export_options(parse_options_file(once).unwrap())

    assert once == twice
    assert "GROUP eng alice bob\n" in once
    assert 'INCLUDE "MATLAB asset_info=123456" GROUP eng\n' in once
    assert "TIMEOUTALL" not in once


_NAMES = st.text(alphabet="abcdefghijklmnopqrstuvwxyz_", min_size=1, max_size=8)
_PRODUCTS = st.sampled_from(["MATLAB", "SIMULINK", "Signal_Toolbox", "MATLAB_Coder"])
_CLIENT_TYPES = st.sampled_from(["USER", "GROUP", "HOST", "HOST_GROUP", "DISPLAY", "PROJECT"])
_SEATS = st.integers(min_value=1, max_value=500)


@st.composite
def _qualifiers(draw: st.DrawFn) -> dict[str, str]:
    choice = draw(st.sampled_from(["none", "number", "key"]))
    if choice == "number":
        return {"license_number": str(draw(st.integers(min_value=1, max_value=99_999_999)))}
    if choice == "key":
        return {"product_key": draw(st.text(alphabet="ABCDEF0123456789", min_size=10, max_size=20))}
    return {}


@st.composite
def _product_directive(draw: st.DrawFn) -> Directive:
    kind = draw(st.sampled_from([Include, Exclude, IncludeBorrow, ExcludeBorrow]))
    return kind(
        product_name=draw(_PRODUCTS),
        client_type=draw(_CLIENT_TYPES),
        client_specified=draw(_NAMES),
        **draw(_qualifiers()),
    )


@st.composite
def _other_directive(draw: st.DrawFn) -> Directive:
    choice = draw(st.sampled_from(["all", "reserve", "max", "case", "comment"]))
    if choice == "all":
        kind = draw(st.sampled_from([IncludeAll, ExcludeAll]))
        return kind(client_type=draw(_CLIENT_TYPES), client_specified=draw(_NAMES))
    if choice == "reserve":
        return Reserve(
            seat_count=draw(_SEATS),
            product_name=draw(_PRODUCTS),
            client_type=draw(_CLIENT_TYPES),
            client_specified=draw(_NAMES),
            **draw(_qualifiers()),
        )
    if choice == "max":
        return Max(
            max_seats=draw(_SEATS),
            product_name=draw(_PRODUCTS),
            client_type=draw(_CLIENT_TYPES),
            client_specified=draw(_NAMES),
        )
    if choice == "case":
        return GroupCaseInsensitive()
    return Comment(text=" ".join(draw(st.lists(_NAMES, max_size=4))))


@st.composite
def _documents(draw: st.DrawFn) -> list[Directive]:
    directives: list[Directive] = [draw(_product_directive())]
    directives.extend(
        draw(st.lists(st.one_of(_product_directive(), _other_directive()), max_size=12))
    )
    group_names = draw(st.lists(_NAMES, unique=True, max_size=3))
    for index, name in enumerate(group_names):
        factory = Group if index % 2 == 0 else HostGroup
        members = tuple(draw(st.lists(_NAMES, min_size=1, max_size=5)))
        position = draw(st.integers(min_value=0, max_value=len(directives)))
        directives.insert(position, factory(group_name=name, members=members))
    return directives


@pytest.mark.unit
@settings(max_examples=75, deadline=None)
@given(_documents())
def test_export_then_parse_round_trips(directives: list[Directive]) -> None:
    document = OptionsDocument(directives)

    reparsed = parse_options_file(export_options(document)).unwrap()

    assert reparsed.directives == document.directives


_OPTION_PRODUCTS = st.sampled_from(
    ["MATLAB", "SIMULINK", "MATLAB:asset_info=123456", '"SIMULINK key=ABCDEF0123"']
)


@st.composite
def _option_lines(draw: st.DrawFn) -> str:
    choice = draw(
        st.sampled_from(
            ["product", "all", "reserve", "max", "group", "case", "comment", "ignored", "blank"]
        )
    )
    client = f"{draw(_CLIENT_TYPES)} {draw(_NAMES)}"
    if choice == "product":
        keyword = draw(st.sampled_from(["INCLUDE", "EXCLUDE", "INCLUDE_BORROW", "EXCLUDE_BORROW"]))
        return f"{keyword} {draw(_OPTION_PRODUCTS)} {client}"
    if choice == "all":
        return f"{draw(st.sampled_from(['INCLUDEALL', 'EXCLUDEALL']))} {client}"
    if choice == "reserve":
        return f"RESERVE {draw(_SEATS)} {draw(_OPTION_PRODUCTS)} {client}"
    if choice == "max":
        return f"MAX {draw(_SEATS)} {draw(st.sampled_from(['MATLAB', 'SIMULINK']))} {client}"
    if choice == "group":
        keyword = draw(st.sampled_from(["GROUP", "HOST_GROUP"]))
        name = draw(st.sampled_from(["eng", "lab", "ops"]))
        members = " ".join(draw(st.lists(_NAMES, min_size=1, max_size=4)))
        return f"{keyword} {name} {members}"
    if choice == "case":
        return "GROUPCASEINSENSITIVE ON"
    if choice == "comment":
        return "# " + " ".join(draw(st.lists(_NAMES, min_size=1, max_size=3)))
    if choice == "ignored":
        return draw(st.sampled_from(["TIMEOUTALL 3600", "DEBUGLOG +/tmp/flex.log", "NOLOG DENIED"]))
    return ""


@pytest.mark.unit
@settings(max_examples=100, deadline=None)
@given(st.lists(_option_lines(), min_size=1, max_size=15))
def test_parse_then_export_then_parse_is_stable(lines: list[str]) -> None:
    first = parse_options_file("\n".join(lines) + "\n")
    assume(first.document is not None)

    exported = export_options(first.unwrap())
    second = parse_options_file(exported)

    assert second.error is None, (exported, second.error)
    assert second.unwrap().directives == first.unwrap().directives
