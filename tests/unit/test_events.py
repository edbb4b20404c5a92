"""
Unit tests for event sinks.
"""

import pytest

from expander.models import PipelineStage, ProgressUpdate
from expander.orchestration.events import CallbackSink, EventSink, NullSink, RecordingSink


def _event(message="working"):
    return ProgressUpdate(stage=PipelineStage.OUTLINE, message=message)


@pytest.mark.asyncio
async def test_sync_callback_receives_events():
    received = []
    sink = CallbackSink(received.append)
    await sink.emit(_event("a"))
    await sink.emit(_event("b"))
    assert [e.message for e in received] == ["a", "b"]


@pytest.mark.asyncio
async def test_async_callback_is_awaited():
    received = []

    async def on_event(event):
        received.append(event.kind)

    await CallbackSink(on_event).emit(_event())
    assert received == ["progress"]


@pytest.mark.asyncio
async def test_failing_callback_is_swallowed():
    def on_event(event):
        raise RuntimeError("consumer went away")

    await CallbackSink(on_event).emit(_event())


@pytest.mark.asyncio
async def test_recording_sink_filters_by_kind():
    sink = RecordingSink()
    await sink.emit(_event())
    assert len(sink.of_kind("progress")) == 1
    assert sink.of_kind("complete") == []


def test_sinks_satisfy_protocol():
    for sink in (NullSink(), RecordingSink(), CallbackSink(print)):
        assert isinstance(sink, EventSink)
