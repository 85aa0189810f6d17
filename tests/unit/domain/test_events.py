"""Unit tests for typed event channels."""

from __future__ import annotations

import pytest

from flexlm_options.domain.events import ChangeKind, DocumentChange, EventChannel


@pytest.mark.unit
def test_publish_reaches_subscribers_in_order() -> None:
    channel: EventChannel[int] = EventChannel("numbers")
    seen: list[tuple[str, int]] = []

    channel.subscribe(lambda value: seen.append(("first", value)))
    channel.subscribe(lambda value: seen.append(("second", value)))

    assert channel.publish(7) == 0
    assert seen == [("first", 7), ("second", 7)]
    assert len(channel) == 2
    assert channel.name == "numbers"


@pytest.mark.unit
def test_disposer_unsubscribes_and_is_idempotent() -> None:
    channel: EventChannel[str] = EventChannel("words")
    seen: list[str] = []
    dispose = channel.subscribe(seen.append)

    dispose()
    dispose()
    channel.publish("ignored")

    assert seen == []
    assert len(channel) == 0


@pytest.mark.unit
def test_failing_subscriber_does_not_block_others() -> None:
    channel: EventChannel[DocumentChange] = EventChannel("changes")
    seen: list[DocumentChange] = []

    def broken(_: DocumentChange) -> None:
        raise RuntimeError("boom")

    channel.subscribe(broken)
    channel.subscribe(seen.append)
    change = DocumentChange(ChangeKind.CLEAR)

    assert channel.publish(change) == 1
    assert seen == [change]


@pytest.mark.unit
def test_subscribe_requires_callable() -> None:
    channel: EventChannel[int] = EventChannel("numbers")
    with pytest.raises(ValueError, match="callable"):
        channel.subscribe(42)  # type: ignore[arg-type]
