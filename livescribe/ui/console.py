"""Rich renderer for transcript snapshots."""

import logging

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.transcript import TranscriptSnapshot

logger = logging.getLogger(__name__)


class TranscriptView:
    """Renders a TranscriptSnapshot as a rich renderable."""

    def __init__(self, console: Console = None, max_segments: int = 12):
        self.console = console or Console()
        self.max_segments = max_segments

    def render(self, snapshot: TranscriptSnapshot) -> Panel:
        if snapshot.recording:
            status = Text("🔴 Listening...", style="bold red")
        else:
            status = Text("⏹️  Not Recording", style="bold yellow")
        header = Text.assemble(status, f"   Room: {snapshot.room_id}   ",
                               f"Progress: {snapshot.progress:.1f}%")
        if snapshot.channel_lost:
            header.append("   ❌ Connection lost", style="bold red")

        table = Table(show_header=True, header_style="bold", expand=True)
        table.add_column("Speaker", width=9)
        table.add_column("Text", ratio=1)
        table.add_column("", width=7)

        segments = snapshot.segments[-self.max_segments:]
        if not segments:
            table.add_row("", Text("No speech detected yet.", style="dim"), "")
        for segment in segments:
            style = None if segment.is_final else "italic dim"
            table.add_row(segment.speaker_id, Text(segment.text, style=style),
                          segment.finality.value)

        parts = [header, table]
        if snapshot.chapter_titles:
            parts.append(Panel(snapshot.chapter_titles, title="📚 Chapter Titles"))
        return Panel(Group(*parts), title="🗣️ livescribe", border_style="blue")

    def print_summary(self, snapshot: TranscriptSnapshot) -> None:
        """Print the final transcript after a session."""
        self.console.print("\n📄 TRANSCRIPT:", style="bold")
        self.console.print("-" * 40)
        if not snapshot.segments:
            self.console.print("No speech detected.", style="dim")
        for i, segment in enumerate(snapshot.segments, 1):
            self.console.print(f"{i:2d}. [{segment.finality.value}] "
                               f"Speaker {segment.speaker_id}: {segment.text}")
        self.console.print("-" * 40)
        self.console.print(f"Progress: {snapshot.progress:.1f}%")
        if snapshot.chapter_titles:
            self.console.print("\n📚 CHAPTER TITLES:", style="bold")
            self.console.print(snapshot.chapter_titles)
