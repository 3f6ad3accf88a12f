"""
Main entry point for the Voice Companion application.

Runs either the conversation loop (listen, respond, speak) or the guide
(narrate help as locations change) on the console or on local audio.
"""

import argparse
import asyncio
import logging
import os
import sys

from voice_companion.config import Settings, get_settings
from voice_companion.engine.conversation_orchestrator import ConversationOrchestrator
from voice_companion.engine.guide_orchestrator import GuideOrchestrator
from voice_companion.engine.schemas import GuideContext, Notification, UtteranceParams
from voice_companion.engine.voice_policy import VoicePreferencePolicy
from voice_companion.errors import CapabilityUnavailableError
from voice_companion.voice.capabilities import CaptureCapability, SynthesisCapability
from voice_companion.voice.capture import CaptureSession
from voice_companion.voice.console import ConsoleCapture, ConsoleSynthesis
from voice_companion.voice.synthesis import SynthesisSession

TERMINATION_PHRASES = ("quit", "exit", "goodbye", "bye")
MAX_FAILED_TURNS = 3
POLL_INTERVAL_S = 0.05


def log_level_for(settings: Settings) -> int:
    """Resolve the root logging level; debug mode wins over log_level."""
    if settings.debug:
        return logging.DEBUG
    return getattr(logging, settings.log_level)


def setup_logging() -> None:
    """Configure application logging."""
    settings = get_settings()
    logging.basicConfig(
        level=log_level_for(settings),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="voice-companion", description="Talk to the wellness companion by voice")
    p.add_argument(
        "--platform",
        choices=["console", "local"],
        default=os.getenv("VOICE_COMPANION_PLATFORM", "console"),
        help="Speech platform: typed console I/O, or local Whisper + Piper (default: VOICE_COMPANION_PLATFORM or console)",
    )
    sub = p.add_subparsers(dest="mode")
    sub.add_parser("chat", help="Converse with the companion (default)")
    sub.add_parser("guide", help="Hear context help while entering locations such as /auth or /app")
    return p


def build_synthesis_session(capability: SynthesisCapability, settings: Settings) -> SynthesisSession:
    return SynthesisSession(
        capability,
        policy=VoicePreferencePolicy(settings.preferred_voice_markers, settings.default_language),
        params=UtteranceParams(
            rate=settings.speech_rate,
            pitch=settings.speech_pitch,
            volume=settings.speech_volume,
        ),
    )


async def build_capabilities(platform: str) -> tuple[CaptureCapability, SynthesisCapability]:
    """Create the capture and synthesis capabilities for a platform."""
    if platform == "console":
        return ConsoleCapture(), ConsoleSynthesis()

    try:
        from voice_companion.voice.piper_synthesis import PiperSynthesis
        from voice_companion.voice.whisper_capture import WhisperCapture
    except ModuleNotFoundError as e:
        raise CapabilityUnavailableError(
            "Local voice dependencies are not installed. Install with: pip install -e '.[voice]'",
            capability=platform,
        ) from e

    synthesis = PiperSynthesis()
    if synthesis.is_supported:
        await synthesis.load_voices()
    return WhisperCapture(), synthesis


def _print_notification(notification: Notification) -> None:
    print(f"\n[{notification.severity.value.upper()}] {notification.title}: {notification.description}\n")


async def _wait_until(predicate) -> None:  # noqa: ANN001
    while not predicate():
        await asyncio.sleep(POLL_INTERVAL_S)


async def run_chat(capture: CaptureCapability, synthesis: SynthesisCapability, settings: Settings) -> None:
    failures = 0

    def _on_notification(notification: Notification) -> None:
        nonlocal failures
        failures += 1
        _print_notification(notification)

    orchestrator = ConversationOrchestrator(
        CaptureSession(capture),
        build_synthesis_session(synthesis, settings),
        notify=_on_notification,
    )
    if not orchestrator.is_supported:
        print("Voice chat is not supported on this platform.")
        return

    print("Speak (or type) to the companion. Say 'quit' to leave.")
    try:
        while True:
            before = len(orchestrator.transcript)
            failures_before = failures
            if not orchestrator.begin_turn():
                await asyncio.sleep(POLL_INTERVAL_S)
                continue
            await _wait_until(
                lambda: not (orchestrator.is_listening or orchestrator.reply_pending or orchestrator.is_speaking)
            )

            transcript = orchestrator.transcript
            if len(transcript) > before:
                failures = 0
                said = transcript[before].text.strip().lower()
                if said in TERMINATION_PHRASES:
                    break
            elif failures > failures_before and failures >= MAX_FAILED_TURNS:
                print("Too many failed attempts; ending the conversation.")
                break
    finally:
        orchestrator.close()


async def run_guide(synthesis: SynthesisCapability, settings: Settings) -> None:
    guide = GuideOrchestrator(build_synthesis_session(synthesis, settings))
    if not guide.is_supported:
        print("Voice guidance is not supported on this platform.")
        return

    print("Enter a location (e.g. /auth, /app, '/app first'), or: help, repeat, toggle, stop, quit.")
    try:
        while True:
            try:
                line = (await asyncio.to_thread(input, "> ")).strip()
            except EOFError:
                break

            command = line.lower()
            if command in TERMINATION_PHRASES:
                break
            if command == "help":
                if not guide.request_help():
                    print("(guide is disabled or already speaking)")
            elif command == "repeat":
                if not guide.repeat():
                    print("(guide is disabled or already speaking)")
            elif command == "toggle":
                print(f"Guide {'enabled' if guide.toggle_enabled() else 'disabled'}.")
            elif command == "stop":
                guide.stop()
            elif line:
                key, _, flag = line.partition(" ")
                guide.on_location_change(key, GuideContext(is_first_time=flag.strip().lower() == "first"))
    finally:
        guide.close()


async def run(argv: list[str] | None = None) -> None:
    """
    Run the application.

    Args:
        argv: Command-line arguments (without the program name).
    """
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logger = logging.getLogger(__name__)

    logger.info(f"Starting voice companion platform={args.platform} mode={args.mode or 'chat'}")
    capture, synthesis = await build_capabilities(args.platform)

    if args.mode == "guide":
        await run_guide(synthesis, settings)
    else:
        await run_chat(capture, synthesis, settings)


def main() -> None:
    """Main entry point for the application."""
    setup_logging()

    try:
        asyncio.run(run(sys.argv[1:]))
    except KeyboardInterrupt:
        print("\nSession terminated by user.")
        sys.exit(0)
    except CapabilityUnavailableError as e:
        logging.error(str(e))
        sys.exit(1)
    except Exception as e:
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
