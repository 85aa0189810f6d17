"""Unit tests for the editing session."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from builders import TODAY, catalog, increment_line, license_text, nnu_increment_line
from flexlm_options.config.loader import RuntimeSettings
from flexlm_options.domain.models import (
    GroupCaseInsensitive,
    Include,
    Max,
    Severity,
    ValidationResult,
)
from flexlm_options.state.session import EditorSession
from flexlm_options.validation.engine import ValidationReport


@dataclass
class _FakeHandle:
    delay: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class _FakeTimers:
    scheduled: list[_FakeHandle] = field(default_factory=list)

    def __call__(self, delay: float, callback: Callable[[], None]) -> _FakeHandle:
        handle = _FakeHandle(delay, callback)
        self.scheduled.append(handle)
        return handle

    def fire_all(self) -> None:
        for handle in list(self.scheduled):
            if not handle.cancelled:
                handle.callback()


def _session(**kwargs: object) -> EditorSession:
    return EditorSession(reference_products=catalog(), today=TODAY, **kwargs)  # type: ignore[arg-type]


@pytest.mark.unit
def test_synchronous_session_validates_each_change() -> None:
    session = _session()
    reports: list[ValidationReport] = []
    session.validation_complete.subscribe(reports.append)

    assert session.load_license_text(license_text([increment_line()])).ok
    session.load_options_text("INCLUDE MATLAB USER alice\n")

    assert len(reports) == 2
    entry = session.report.seat_summary.get("MATLAB", "123456")
    assert entry is not None
    assert entry.remaining == 4
    assert not session.validation_pending


@pytest.mark.unit
def test_rejected_files_leave_state_unchanged() -> None:
    session = _session()
    session.load_license_text(license_text([increment_line()]))
    session.load_options_text("INCLUDE MATLAB USER alice\n")
    license_before = session.license_data
    directives_before = session.document.directives

    license_result = session.load_license_text("")
    options_result = session.load_options_text("INCLUDE Foo USER alice\n")

    assert license_result.error is not None
    assert options_result.error is not None
    assert session.license_data is license_before
    assert session.document.directives == directives_before


@pytest.mark.unit
def test_notification_channels() -> None:
    session = _session()
    loaded: list[object] = []
    changes: list[object] = []
    summaries: list[object] = []
    session.license_loaded.subscribe(loaded.append)
    session.document_changed.subscribe(changes.append)
    session.seat_summary_updated.subscribe(summaries.append)

    session.load_license_text(license_text([increment_line()]))
    session.document.add(Include(product_name="MATLAB", client_type="USER", client_specified="a"))

    assert loaded == [session.license_data]
    assert len(changes) == 1
    assert len(summaries) == 2


@pytest.mark.unit
def test_debounced_validation_coalesces_bursts() -> None:
    timers = _FakeTimers()
    session = _session(timer_factory=timers, debounce_seconds=0.25)
    reports: list[ValidationReport] = []
    session.validation_complete.subscribe(reports.append)

    session.load_license_text(license_text([increment_line()]))
    for user in ("a", "b", "c"):
        session.document.add(
            Include(product_name="MATLAB", client_type="USER", client_specified=user)
        )

    assert session.validation_pending
    assert reports == []
    assert {handle.delay for handle in timers.scheduled} == {0.25}

    timers.fire_all()

    assert len(reports) == 1
    assert not session.validation_pending
    entry = reports[0].seat_summary.get("MATLAB", "123456")
    assert entry is not None
    assert entry.remaining == 2


@pytest.mark.unit
def test_flush_and_revalidate() -> None:
    timers = _FakeTimers()
    session = _session(timer_factory=timers)

    session.load_options_text("INCLUDE MATLAB USER alice\n")
    assert session.flush()
    assert not session.flush()
    assert session.report.results == ()

    session.new_document()
    assert session.validation_pending
    report = session.revalidate()
    assert not session.validation_pending
    assert report is session.report
    session.close()


@pytest.mark.unit
def test_toggle_case_insensitive_and_export() -> None:
    session = _session()
    session.load_options_text("GROUP Eng alice\nINCLUDE MATLAB GROUP eng\n")

    assert any(r.severity is Severity.ERROR for r in session.report.results)
    assert session.toggle_case_insensitive() is True
    assert isinstance(session.document.directives[0], GroupCaseInsensitive)
    assert not session.report.has_errors
    assert session.export_text().startswith("GROUPCASEINSENSITIVE ON\nGROUP Eng alice\n")
    assert session.toggle_case_insensitive() is False


@pytest.mark.unit
def test_apply_suggestion_appends_max_lines() -> None:
    session = _session()
    session.load_license_text(license_text([nnu_increment_line(seats="4")]))
    session.load_options_text("INCLUDE MATLAB USER alice\n")

    (suggestion,) = session.report.by_severity(Severity.SUGGESTION)
    added = session.apply_suggestion(suggestion)

    assert [type(d) for d in added] == [Max]
    assert added[0].directive_id == "dir-2"
    assert session.report.by_severity(Severity.SUGGESTION) == ()


@pytest.mark.unit
def test_apply_suggestion_rejects_other_severities() -> None:
    session = _session()
    with pytest.raises(ValueError, match="not a suggestion"):
        session.apply_suggestion(ValidationResult(Severity.WARNING, "nope"))


@pytest.mark.unit
def test_new_document_restarts_ids() -> None:
    session = _session()
    session.load_options_text("INCLUDE MATLAB USER alice\nINCLUDE MATLAB USER bob\n")

    session.new_document()
    stored = session.document.add(
        Include(product_name="MATLAB", client_type="USER", client_specified="c")
    )

    assert stored.directive_id == "dir-1"


@pytest.mark.unit
def test_from_settings() -> None:
    settings = RuntimeSettings(
        debounce_seconds=0.5,
        reference_products=None,
        today=TODAY,
        log_level="WARNING",
        json_logs=False,
    )
    timers = _FakeTimers()

    session = EditorSession.from_settings(settings, timer_factory=timers)
    session.load_options_text("INCLUDE MATLAB USER alice\n")

    assert "MATLAB" in session.reference_products
    assert timers.scheduled[-1].delay == 0.5
