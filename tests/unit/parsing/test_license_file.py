"""Unit tests for the license file parser."""

from __future__ import annotations

from datetime import date

import pytest
from hypothesis import given
from hypothesis import strategies as st

from builders import TODAY, increment_line, license_text, nnu_increment_line
from flexlm_options.domain.models import LicenseOffering
from flexlm_options.parsing.errors import LicenseFileError
from flexlm_options.parsing.license_file import parse_license_file, preprocess


def _parse(text: str):
    return parse_license_file(text, today=TODAY)


@pytest.mark.unit
def test_minimal_concurrent_license() -> None:
    result = _parse(license_text([increment_line()]))

    assert result.ok
    assert result.warnings == ()
    data = result.unwrap()
    assert data.is_loaded
    assert len(data.products) == 1
    entry = data.products[0]
    assert entry.product_name == "MATLAB"
    assert entry.seat_count == 5
    assert entry.original_seat_count == 5
    assert entry.license_offering is LicenseOffering.CONCURRENT
    assert entry.license_number == "123456"
    assert entry.product_key == "ABCDEFghij12"
    assert entry.expiration_date == date(2999, 1, 1)


@pytest.mark.unit
def test_multiple_products_keep_file_order() -> None:
    result = _parse(
        license_text(
            [
                increment_line("MATLAB", asset_info="asset_info=111111"),
                increment_line("SIMULINK", asset_info="asset_info=222222"),
            ]
        )
    )

    data = result.unwrap()
    assert [p.product_name for p in data.products] == ["MATLAB", "SIMULINK"]
    assert data.license_numbers() == ("111111", "222222")


@pytest.mark.unit
def test_named_user_seats_are_halved_except_single_seat() -> None:
    halved = _parse(license_text([nnu_increment_line(seats="4")])).unwrap()
    single = _parse(license_text([nnu_increment_line(seats="1")])).unwrap()

    assert halved.products[0].license_offering is LicenseOffering.NAMED_USER
    assert halved.products[0].seat_count == 2
    assert halved.products[0].original_seat_count == 2
    assert single.products[0].seat_count == 1
    assert halved.is_named_user_only()


@pytest.mark.unit
@given(st.integers(min_value=2, max_value=5000))
def test_named_user_halving_property(seats: int) -> None:
    data = _parse(license_text([nnu_increment_line(seats=str(seats))])).unwrap()
    assert data.products[0].seat_count == seats // 2


@pytest.mark.unit
def test_bundled_polyspace_products_inherit_archive_serial_number() -> None:
    text = license_text(
        [
            increment_line("TMW_Archive", asset_info="SN=445566"),
            nnu_increment_line("PolySpace_Bug_Finder", asset_info=""),
        ]
    )

    data = _parse(text).unwrap()

    assert [p.product_name for p in data.products] == ["PolySpace_Bug_Finder"]
    entry = data.products[0]
    assert entry.license_number == "445566"
    assert entry.license_offering is LicenseOffering.NAMED_USER
    assert entry.seat_count == 4


@pytest.mark.unit
def test_bundle_number_only_carries_to_polyspace_products() -> None:
    text = license_text(
        [
            increment_line("TMW_Archive", asset_info="SN=445566"),
            increment_line("SIMULINK", asset_info=""),
        ]
    )

    result = _parse(text)

    assert result.error is not None
    assert "license number was not found for product SIMULINK" in result.error
    assert result.error_line == 4


@pytest.mark.unit
def test_total_headcount_without_user_based_is_concurrent() -> None:
    data = _parse(license_text([increment_line(offering="VENDOR_STRING=lo=TH:")])).unwrap()
    assert data.products[0].license_offering is LicenseOffering.CONCURRENT


@pytest.mark.unit
def test_perpetual_expiry_maps_to_far_future() -> None:
    data = _parse(license_text([increment_line(expiry="01-jan-0000")])).unwrap()
    assert data.products[0].expiration_date == date(2999, 1, 1)


@pytest.mark.unit
def test_continuation_lines_are_joined() -> None:
    line = increment_line()
    split_at = line.index("asset_info=")
    text = license_text([line[:split_at] + "\\\n\t" + line[split_at:]])

    result = _parse(text)

    assert result.ok
    assert result.unwrap().products[0].license_number == "123456"


@pytest.mark.unit
def test_soft_problems_become_warnings() -> None:
    text = license_text(
        ["USE_SERVER", increment_line()],
        server="SERVER myhost ABCDEF123456",
        daemon="DAEMON MLM /path/to/mlm options=/path/to/opts.opt",
    )

    result = _parse(text)

    data = result.unwrap()
    assert not data.server_line_has_port
    assert not data.daemon_line_has_port
    assert any("USE_SERVER" in warning for warning in result.warnings)
    assert any("SERVER line" in warning for warning in result.warnings)
    assert any("random port" in warning for warning in result.warnings)


@pytest.mark.unit
def test_uppercase_port_marks_daemon_cnu_friendly() -> None:
    text = license_text(
        [increment_line()],
        daemon="DAEMON MLM /path/to/mlm options=/path/to/opts.opt PORT=27001",
    )
    assert _parse(text).unwrap().daemon_port_is_cnu_friendly


@pytest.mark.unit
@pytest.mark.parametrize(
    ("text", "fragment"),
    [
        ("", "empty"),
        ("   \n\n", "empty"),
        (license_text([]), "no INCREMENT lines found"),
        (license_text([increment_line(offering="VENDOR_STRING=lo=DC:")]), "Designated Computer"),
        (license_text([increment_line() + " CONTRACT_ID=1"]), "non-MathWorks"),
        (
            license_text(
                [increment_line()],
                server=["SERVER a ABCDEF123456 27000", "SERVER b ABCDEF123456 27001"],
            ),
            "invalid number of SERVER lines",
        ),
        (license_text([increment_line()], server=[]), "no SERVER lines"),
        (license_text([increment_line()], server="SERVER myhost 27000"), "omitted your Host ID"),
        (license_text([increment_line()], server="SERVER myhost SHORT 27000"), "Host ID"),
        (license_text([increment_line()], daemon="DAEMON notMLM /path options=/path.opt"), "MLM"),
        (license_text([increment_line()], daemon="DAEMON MLM /path/to/mlm"), "options="),
        (
            license_text([increment_line()], daemon="DAEMON  MLM /path options=/o.opt"),
            "too many spaces",
        ),
        (license_text([increment_line(expiry="01-jan-2020")]), "expired on 01-jan-2020"),
        (license_text([increment_line(seats="uncounted")]), "uncounted"),
        (license_text([increment_line(seats="five")]), 'seat count "five"'),
        (license_text([increment_line(seats="0")]), "zero or less"),
        (license_text([increment_line(key="ABC")]), "shorter than 10 characters"),
        (license_text([increment_line(key="A" * 21)]), "greater than 20 characters"),
        (license_text([increment_line(asset_info="asset_info=DEMO")]), "trial license"),
        (license_text([increment_line(asset_info="")]), "license number was not found"),
        (license_text([increment_line(offering="VENDOR_STRING=lo=XX:")]), "invalid license offering"),
        (
            license_text([nnu_increment_line("MATLAB_Distrib_Comp_Engine")]),
            "MATLAB Parallel Server is registered as NNU",
        ),
        (license_text([increment_line(), "BOGUS line here"]), "Unrecognized line"),
        (license_text([increment_line(offering="PLATFORMS=x")]), "PLP on Windows"),
        (
            license_text([increment_line(offering="", key="A" * 20)]),
            "missing the TMW_Archive product",
        ),
        (
            license_text(
                [increment_line()],
                daemon="DAEMON MLM /path/to/mlm options=/o.opt port=27001 # BEGIN--------------",
            ),
            "intended to be commented out",
        ),
    ],
)
def test_rejections(text: str, fragment: str) -> None:
    result = _parse(text)

    assert result.license_data is None
    assert not result.ok
    assert result.error is not None
    assert fragment in result.error


@pytest.mark.unit
def test_rejection_reports_line_and_unwrap_raises() -> None:
    text = license_text([increment_line(), increment_line("SIMULINK", expiry="01-jan-2020")])

    result = _parse(text)

    assert result.error_line == 4
    with pytest.raises(LicenseFileError) as excinfo:
        result.unwrap()
    assert excinfo.value.line == 4
    assert str(excinfo.value).startswith("line 4: ")


@pytest.mark.unit
def test_server_after_product_is_rejected() -> None:
    text = license_text([increment_line(), "SERVER other ABCDEF123456 27000"])

    result = _parse(text)

    assert result.error == "The SERVER line(s) are listed after a product."


@pytest.mark.unit
def test_mislabelled_concurrent_license_is_rejected() -> None:
    line = increment_line(seats="0", asset_info="asset_info=220668", version="17")

    result = _parse(license_text([line]))

    assert result.error is not None
    assert "incorrectly labeled as Concurrent" in result.error


@pytest.mark.unit
def test_preprocess_splits_every_newline_style() -> None:
    assert preprocess("a\r\nb\rc\nd") == ["a", "b", "c", "d"]
    assert preprocess("a \\\nb\tc", tab_replacement=" ") == ["a b c"]
