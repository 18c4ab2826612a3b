"""Transcript aggregator folding server-pushed events into client state.

Subscribes to the inbound event topics of one client's dispatcher and keeps
three state slices: an append-only transcript log in arrival order, the last
reported progress percentage and the last chapter titles text. Each mutation
is followed by a ``state_changed`` message so presentation can re-read the
snapshot.
"""

import logging
from typing import List

from ..models.events import InboundEvent
from ..models.transcript import (
    Finality,
    TranscriptSegment,
    TranscriptSnapshot,
    UNKNOWN_SPEAKER,
)
from ..streaming import topics
from ..streaming.dispatcher import EventDispatcher

logger = logging.getLogger(__name__)

CHAPTER_TITLES_NOTIFICATION = "Chapter Titles Generated"

SEGMENT_EVENTS = {
    topics.PARTIAL_RESULT: Finality.PARTIAL,
    topics.FINAL_RESULT: Finality.FINAL,
    topics.TRANSCRIBE_PARTIAL: Finality.PARTIAL,
    topics.TRANSCRIBE_FINAL: Finality.FINAL,
}


class TranscriptAggregator:
    """Aggregates inbound transcription events for one client."""

    def __init__(self, dispatcher: EventDispatcher):
        """Initialize transcript aggregator.

        Args:
            dispatcher: Dispatcher of the owning client
        """
        self.dispatcher = dispatcher

        self.segments: List[TranscriptSegment] = []
        self.progress: float = 0.0
        self.chapter_titles: str = ""

        for name in SEGMENT_EVENTS:
            dispatcher.subscribe(self._on_segment_event, name)
        dispatcher.subscribe(self._on_progress, topics.TRANSCRIPTION_PROGRESS)
        dispatcher.subscribe(self._on_chapter_titles, topics.CHAPTER_TITLES)
        dispatcher.subscribe(self._on_join_room, topics.JOIN_ROOM)

        logger.info(f"TranscriptAggregator initialized - subscribed under {dispatcher.topic_root}")

    def reset(self) -> None:
        """Clear the log, zero progress and clear chapter titles."""
        self.segments.clear()
        self.progress = 0.0
        self.chapter_titles = ""
        logger.debug("Transcript state reset")
        self._publish_state_changed()

    def snapshot(self, recording: bool = False, room_id: str = "",
                 channel_lost: bool = False) -> TranscriptSnapshot:
        return TranscriptSnapshot(
            recording=recording,
            segments=tuple(self.segments),
            progress=self.progress,
            chapter_titles=self.chapter_titles,
            room_id=room_id,
            channel_lost=channel_lost,
        )

    def full_text(self, finals_only: bool = True) -> str:
        """Join segment texts, by default only final ones."""
        return " ".join(
            segment.text for segment in self.segments
            if segment.is_final or not finals_only
        )

    @staticmethod
    def _extract_text(event: InboundEvent) -> str:
        if event.name == topics.TRANSCRIBE_FINAL:
            text = event.get("transcript") or event.get("text")
        else:
            text = event.get("text")
        if text is None:
            return ""
        return text if isinstance(text, str) else str(text)

    def _on_segment_event(self, event: InboundEvent) -> None:
        text = self._extract_text(event)
        if not text:
            logger.warning(f"Skipping {event.name} without text: {event.payload}")
            return

        segment = TranscriptSegment(
            text=text,
            speaker_id=str(event.get("speakerId") or UNKNOWN_SPEAKER),
            finality=SEGMENT_EVENTS[event.name],
            source_event=event.name,
        )
        self.segments.append(segment)
        logger.debug(f"Aggregated {segment.finality.value} segment from "
                     f"speaker {segment.speaker_id}: {text[:50]}")
        self._publish_state_changed()

    def _on_progress(self, event: InboundEvent) -> None:
        value = event.get("progress")
        try:
            self.progress = float(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric progress: {value!r}")
            return
        self._publish_state_changed()

    def _on_chapter_titles(self, event: InboundEvent) -> None:
        titles = event.get("titles")
        self.chapter_titles = "" if titles is None else str(titles)
        logger.info("Chapter titles received")
        self.dispatcher.notify(topics.NOTIFICATION, title=CHAPTER_TITLES_NOTIFICATION)
        self._publish_state_changed()

    def _on_join_room(self, event: InboundEvent) -> None:
        logger.info(f"Joined room: {event.get('room')}")

    def _publish_state_changed(self) -> None:
        self.dispatcher.notify(topics.STATE_CHANGED)

    def shutdown(self) -> None:
        """Unsubscribe from all topics."""
        for name in SEGMENT_EVENTS:
            self.dispatcher.unsubscribe(self._on_segment_event, name)
        self.dispatcher.unsubscribe(self._on_progress, topics.TRANSCRIPTION_PROGRESS)
        self.dispatcher.unsubscribe(self._on_chapter_titles, topics.CHAPTER_TITLES)
        self.dispatcher.unsubscribe(self._on_join_room, topics.JOIN_ROOM)
        logger.info("TranscriptAggregator shutdown complete")
