"""Unit tests for TranscriptAggregator."""

import pytest

from livescribe.models.events import InboundEvent
from livescribe.models.transcript import Finality, UNKNOWN_SPEAKER
from livescribe.streaming import topics
from livescribe.transcription.aggregator import (
    CHAPTER_TITLES_NOTIFICATION,
    TranscriptAggregator,
)


def deliver(dispatcher, name, **payload):
    dispatcher.deliver(name, event=InboundEvent(name=name, payload=payload))


@pytest.fixture
def aggregator(dispatcher):
    aggregator = TranscriptAggregator(dispatcher)
    yield aggregator
    aggregator.shutdown()


@pytest.mark.unit
class TestSegments:
    """Partial and final results are appended in arrival order."""

    def test_partial_result_uses_unknown_speaker(self, dispatcher, aggregator):
        deliver(dispatcher, topics.PARTIAL_RESULT, text="hel")

        assert len(aggregator.segments) == 1
        segment = aggregator.segments[0]
        assert segment.text == "hel"
        assert segment.speaker_id == UNKNOWN_SPEAKER
        assert segment.finality is Finality.PARTIAL
        assert segment.source_event == topics.PARTIAL_RESULT

    def test_final_result_keeps_speaker(self, dispatcher, aggregator):
        deliver(dispatcher, topics.FINAL_RESULT, text="hello", speakerId="A")

        segment = aggregator.segments[0]
        assert (segment.text, segment.speaker_id, segment.finality) == ("hello", "A", Finality.FINAL)

    def test_file_based_events_map_to_same_finality(self, dispatcher, aggregator):
        deliver(dispatcher, topics.TRANSCRIBE_PARTIAL, text="part", speakerId="B")
        deliver(dispatcher, topics.TRANSCRIBE_FINAL, transcript="whole", speakerId="B")

        assert [s.finality for s in aggregator.segments] == [Finality.PARTIAL, Finality.FINAL]
        assert [s.text for s in aggregator.segments] == ["part", "whole"]

    def test_transcribe_final_falls_back_to_text(self, dispatcher, aggregator):
        deliver(dispatcher, topics.TRANSCRIBE_FINAL, text="secondary")

        assert aggregator.segments[0].text == "secondary"
        assert aggregator.segments[0].finality is Finality.FINAL

    def test_transcribe_final_prefers_transcript(self, dispatcher, aggregator):
        deliver(dispatcher, topics.TRANSCRIBE_FINAL, transcript="primary", text="secondary")

        assert aggregator.segments[0].text == "primary"

    def test_log_is_append_only_in_arrival_order(self, dispatcher, aggregator):
        events = [
            (topics.FINAL_RESULT, "one"),
            (topics.PARTIAL_RESULT, "tw"),
            (topics.PARTIAL_RESULT, "two"),
            (topics.FINAL_RESULT, "two"),
            (topics.TRANSCRIBE_PARTIAL, "thr"),
            (topics.TRANSCRIBE_FINAL, "three"),
        ]
        for name, text in events:
            deliver(dispatcher, name, text=text)

        assert len(aggregator.segments) == len(events)
        assert [(s.source_event, s.text) for s in aggregator.segments] == events

    def test_final_before_partial_is_not_reordered(self, dispatcher, aggregator):
        deliver(dispatcher, topics.FINAL_RESULT, text="hello")
        deliver(dispatcher, topics.PARTIAL_RESULT, text="hel")

        assert [s.finality for s in aggregator.segments] == [Finality.FINAL, Finality.PARTIAL]

    def test_event_without_text_is_skipped(self, dispatcher, aggregator):
        deliver(dispatcher, topics.FINAL_RESULT, speakerId="A")
        deliver(dispatcher, topics.TRANSCRIBE_FINAL, transcript="", text=None)

        assert aggregator.segments == []

    def test_full_text_joins_finals(self, dispatcher, aggregator):
        deliver(dispatcher, topics.PARTIAL_RESULT, text="hel")
        deliver(dispatcher, topics.FINAL_RESULT, text="hello")
        deliver(dispatcher, topics.FINAL_RESULT, text="world")

        assert aggregator.full_text() == "hello world"
        assert aggregator.full_text(finals_only=False) == "hel hello world"


@pytest.mark.unit
class TestScalarState:
    """Progress and chapter titles are last-write-wins."""

    def test_progress_overwrite_without_clamping(self, dispatcher, aggregator):
        for value in (10, 45, 30):
            deliver(dispatcher, topics.TRANSCRIPTION_PROGRESS, progress=value)

        assert aggregator.progress == 30

    def test_non_numeric_progress_is_ignored(self, dispatcher, aggregator):
        deliver(dispatcher, topics.TRANSCRIPTION_PROGRESS, progress=45)
        deliver(dispatcher, topics.TRANSCRIPTION_PROGRESS, progress="lots")
        deliver(dispatcher, topics.TRANSCRIPTION_PROGRESS)

        assert aggregator.progress == 45

    def test_chapter_titles_overwrite_and_notify(self, dispatcher, aggregator):
        notifications = []

        def on_notification(title):
            notifications.append(title)

        dispatcher.subscribe(on_notification, topics.NOTIFICATION)

        deliver(dispatcher, topics.CHAPTER_TITLES, titles="Intro")
        deliver(dispatcher, topics.CHAPTER_TITLES, titles="Intro\nOutro")

        assert aggregator.chapter_titles == "Intro\nOutro"
        assert notifications == [CHAPTER_TITLES_NOTIFICATION, CHAPTER_TITLES_NOTIFICATION]

    def test_missing_titles_become_empty_string(self, dispatcher, aggregator):
        deliver(dispatcher, topics.CHAPTER_TITLES, titles="Intro")
        deliver(dispatcher, topics.CHAPTER_TITLES)

        assert aggregator.chapter_titles == ""

    def test_join_room_does_not_mutate_state(self, dispatcher, aggregator):
        deliver(dispatcher, topics.JOIN_ROOM, room="abc")

        snapshot = aggregator.snapshot()
        assert snapshot.segments == ()
        assert snapshot.progress == 0
        assert snapshot.chapter_titles == ""


@pytest.mark.unit
def test_reset_clears_all_slices(dispatcher, aggregator):
    deliver(dispatcher, topics.PARTIAL_RESULT, text="hel")
    deliver(dispatcher, topics.TRANSCRIPTION_PROGRESS, progress=55)
    deliver(dispatcher, topics.CHAPTER_TITLES, titles="Intro")

    aggregator.reset()

    assert aggregator.segments == []
    assert aggregator.progress == 0
    assert aggregator.chapter_titles == ""


@pytest.mark.unit
def test_every_mutation_publishes_state_changed(dispatcher, aggregator):
    changes = []

    def on_state_changed():
        changes.append(len(aggregator.segments))

    dispatcher.subscribe(on_state_changed, topics.STATE_CHANGED)

    deliver(dispatcher, topics.PARTIAL_RESULT, text="hel")
    deliver(dispatcher, topics.TRANSCRIPTION_PROGRESS, progress=5)
    deliver(dispatcher, topics.JOIN_ROOM, room="abc")
    aggregator.reset()

    assert changes == [1, 1, 0]


@pytest.mark.unit
def test_snapshot_is_detached_from_log(dispatcher, aggregator):
    deliver(dispatcher, topics.PARTIAL_RESULT, text="hel")
    snapshot = aggregator.snapshot(recording=True, room_id="abc")

    deliver(dispatcher, topics.FINAL_RESULT, text="hello")

    assert len(snapshot.segments) == 1
    assert snapshot.recording is True
    assert snapshot.room_id == "abc"
