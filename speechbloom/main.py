"""Main application entry point for SpeechBloom."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from speechbloom import __version__
from speechbloom.models.transcription import TranscriptResult
from speechbloom.services.transcription_service import SpeechTranscriber

from .config import SpeechBloomConfig

logger = logging.getLogger(__name__)


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = SpeechBloomConfig(config_path)
        # Command line level overrides the config file
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.transcriber: Optional[SpeechTranscriber] = None

    def init(self):
        logger.info("Initializing services...")
        self.transcriber = SpeechTranscriber(self.config)

    async def run(self, duration: float, continuous: bool, chunk_duration_ms: Optional[int]) -> int:
        if not await self.transcriber.initialize(lambda: print("Model ready")):
            print("Failed to load the speech recognition model (see log)")
            return 1

        overrides = {"continuous": continuous}
        if chunk_duration_ms:
            overrides["chunk_duration_ms"] = chunk_duration_ms

        started = await self.transcriber.start_listening(self.on_result, **overrides)
        if not started:
            return 1

        mode = "continuous" if continuous else "single-shot"
        print(f"Recording ({mode}) for {duration:g}s...")
        try:
            await asyncio.sleep(duration)
        finally:
            self.transcriber.stop_listening()
            print("Processing audio...")
            await self.transcriber.wait_idle()

        print(f"\nTranscript: {self.transcriber.history.render() or '(nothing recognized)'}")
        return 0

    def on_result(self, error: Optional[Exception], result: Optional[TranscriptResult]) -> None:
        if error is not None:
            print(f"Error: {error}")
            return
        marker = "*" if result.is_final else "~"
        print(f"{marker} {result.text}")

    async def cleanup(self):
        if self.transcriber is not None:
            await self.transcriber.shutdown()


def setup_logging(config, level: str = "INFO") -> None:

    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/speechbloom.log')
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

    logger = logging.getLogger(__name__)
    logger.info("="*50)
    logger.info("SpeechBloom starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


async def _run_server(server: Server, args) -> int:
    try:
        return await server.run(args.duration, args.continuous, args.chunk_duration_ms)
    finally:
        await server.cleanup()


def main() -> None:
    """Main entry point for SpeechBloom."""
    parser = argparse.ArgumentParser(
        description="SpeechBloom - microphone transcription with Whisper"
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
        "--continuous",
        action="store_true",
        help="Emit interim transcripts while recording"
    )

    parser.add_argument(
        "--chunk-duration-ms",
        type=int,
        help="Continuous mode flush interval in milliseconds (overrides config)"
    )

    parser.add_argument(
        "--duration",
        type=float,
        default=10,
        help="Recording duration in seconds (default: 10)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"SpeechBloom v{__version__}"
    )

    args = parser.parse_args()

    try:
        server = Server(args.config, args.log_level)
        server.init()
        exit_code = asyncio.run(_run_server(server, args))
    except KeyboardInterrupt:
        print("\nGoodbye!")
        exit_code = 0
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
