"""Main application entry point for livescribe."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path

from rich.live import Live

from . import __version__
from .client import LiveTranscriptionClient
from .config import LiveScribeConfig
from .exceptions import MicrophonePermissionError
from .ui.console import TranscriptView

logger = logging.getLogger(__name__)


async def run_session(config: LiveScribeConfig, duration: float, grace: float) -> int:
    """Record one session, render it live and print the final transcript.

    Returns:
        Process exit code
    """
    view = TranscriptView()

    async with LiveTranscriptionClient(config) as client:
        with Live(view.render(client.snapshot()), console=view.console,
                  refresh_per_second=4) as live:

            def refresh() -> None:
                live.update(view.render(client.snapshot()))

            def notify(title: str) -> None:
                view.console.log(f"ℹ️  {title}")

            client.on_state_changed(refresh)
            client.on_notification(notify)

            try:
                await client.start()
            except MicrophonePermissionError as e:
                live.stop()
                view.console.print(f"❌ {e}", style="bold red")
                return 1

            try:
                await asyncio.sleep(duration)
            finally:
                await client.stop()

            # Trailing results keep arriving after the last chunk
            await asyncio.sleep(grace)

        view.print_summary(client.snapshot())
    return 0


def setup_logging(config: LiveScribeConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'logs/livescribe.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("livescribe starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for livescribe."""
    parser = argparse.ArgumentParser(
        description="livescribe - Real-time speech transcription client"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in defaults)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--server",
        type=str,
        help="Transcription backend URL (overrides server.url)"
    )

    parser.add_argument(
        "--duration",
        type=float,
        default=10,
        help="Seconds to record before stopping (default: 10)"
    )

    parser.add_argument(
        "--grace",
        type=float,
        default=3,
        help="Seconds to wait for trailing results after stopping (default: 3)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"livescribe v{__version__}"
    )

    args = parser.parse_args()

    try:
        config = LiveScribeConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    if args.server:
        config.set('server.url', args.server)
    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))

    try:
        exit_code = asyncio.run(run_session(config, args.duration, args.grace))
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        exit_code = 0
    except Exception as e:
        print(f"❌ Error: {e}")
        logger.error(f"Application error: {e}", exc_info=True)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
