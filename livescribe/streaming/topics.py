"""Wire event names and dispatcher topic names."""

# Outbound
AUDIO_DATA = "audio_data"

# Inbound
JOIN_ROOM = "join_room"
PARTIAL_RESULT = "partial_result"
FINAL_RESULT = "final_result"
TRANSCRIBE_PARTIAL = "transcribe_partial"
TRANSCRIBE_FINAL = "transcribe_final"
TRANSCRIPTION_PROGRESS = "transcription_progress"
CHAPTER_TITLES = "chapter_titles"

INBOUND_EVENTS = (
    JOIN_ROOM,
    PARTIAL_RESULT,
    FINAL_RESULT,
    TRANSCRIBE_PARTIAL,
    TRANSCRIBE_FINAL,
    TRANSCRIPTION_PROGRESS,
    CHAPTER_TITLES,
)

# Local dispatcher topics
AUDIO_CHUNK = "audio_chunk"
CHANNEL_LOST = "channel_lost"
STATE_CHANGED = "state_changed"
NOTIFICATION = "notification"
