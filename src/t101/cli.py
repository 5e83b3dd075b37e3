"""Typer CLI definition for t101."""

import asyncio
import logging
import sys
from pathlib import Path

import typer

from .audio.player import AudioPlayer
from .cache import SpeechCache, get_cache_dir
from .client import APIClientError, TerminalAPIClient, TerminalSession
from .config import T101Config, load_config, validate_production
from .errors import ProviderError
from .tts.models import SpeechOptions
from .voice.errors import MicrophonePermissionError, VoiceInputError

app = typer.Typer(help="T-101 AI Terminal: voice chat with a cybernetic persona")
cache_app = typer.Typer(help="Inspect or clear the speech cache")
app.add_typer(cache_app, name="cache")

logger = logging.getLogger(__name__)

BANNER = "T-101 TERMINAL ONLINE. Type a message, press Enter on an empty line to speak, 'exit' to quit."
EXIT_WORDS = {"exit", "quit", "shutdown"}


def configure_logging(config: T101Config, debug: bool) -> None:
    level = logging.DEBUG if debug else getattr(logging, config.server.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def fail(message: str, error: Exception, debug: bool) -> typer.Exit:
    """Print an ERROR line and return the exit to raise."""
    if debug:
        typer.echo(f"ERROR: {message} ({error!r})", err=True)
    else:
        typer.echo(f"ERROR: {message}", err=True)
    return typer.Exit(1)


def describe_error(error: Exception) -> str:
    """One-line, user-facing description of a terminal-side failure."""
    if isinstance(error, MicrophonePermissionError):
        return f"Microphone unavailable: {error}"
    if isinstance(error, VoiceInputError):
        return f"Voice input failed: {error}"
    if isinstance(error, APIClientError):
        if error.status_code is None:
            return str(error)
        return f"Server returned {error.status_code}: {error}"
    return str(error)


def read_text(text: str | None, file: Path | None) -> str:
    """Resolve text from argument, file or piped stdin.

    Raises:
        ValueError: If no text is provided
    """
    if text is None and file is not None:
        text = file.read_text()
    elif text is None and not sys.stdin.isatty():
        text = sys.stdin.read()
    if text is None or not text.strip():
        raise ValueError("No text provided")
    return text.strip()


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (HOST)"),
    port: int | None = typer.Option(None, "--port", help="Port (PORT)"),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging"),
) -> None:
    """Run the backend HTTP server."""
    import uvicorn

    from .server import create_app

    config = load_config()
    configure_logging(config, debug)
    validate_production(config)

    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_level="debug" if debug else config.server.log_level.lower(),
    )


@app.command()
def say(
    text: str | None = typer.Argument(None, help="Text to speak"),
    file: Path | None = typer.Option(None, "-f", "--file", help="Read text from file"),
    output: Path | None = typer.Option(
        None, "-o", "--output", help="Save audio to file instead of playing"
    ),
    voice: str | None = typer.Option(None, "-v", "--voice", help="ElevenLabs voice ID"),
    model: str | None = typer.Option(None, "-m", "--model", help="ElevenLabs model ID"),
    native: bool = typer.Option(False, "--native", help="Use on-device speech only"),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging"),
) -> None:
    """Speak text through the server, falling back to native speech."""
    config = load_config()
    configure_logging(config, debug)

    try:
        content = read_text(text, file)
    except (ValueError, OSError) as e:
        raise fail(str(e), e, debug) from None

    options = SpeechOptions(voice_id=voice, model_id=model, use_native=native)

    async def _run() -> Path | None:
        if output is not None:
            async with TerminalAPIClient(
                config.client.server_url, api_key=config.client.api_key
            ) as client:
                audio = await client.synthesize(content, options)
            return AudioPlayer().save_to_file(audio, output)
        async with TerminalSession(config.client) as session:
            await session.speak(content, options)
        return None

    try:
        saved = asyncio.run(_run())
    except (APIClientError, OSError) as e:
        raise fail(describe_error(e), e, debug) from None

    if saved is not None:
        typer.echo(f"Audio saved to {saved}")


@app.command()
def listen(
    max_ms: int | None = typer.Option(
        None, "--max-ms", help="Recording budget in milliseconds"
    ),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging"),
) -> None:
    """Listen once and print the transcript."""
    config = load_config()
    configure_logging(config, debug)

    async def _run() -> str:
        async with TerminalSession(config.client) as session:
            return await session.listen(max_ms)

    try:
        typer.echo(asyncio.run(_run()))
    except (VoiceInputError, APIClientError) as e:
        raise fail(describe_error(e), e, debug) from None


@app.command()
def chat(
    message: str = typer.Argument(..., help="Message for the T-101"),
    speak: bool = typer.Option(False, "--speak", help="Speak the reply aloud"),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging"),
) -> None:
    """Send one message and print the reply."""
    config = load_config()
    configure_logging(config, debug)

    async def _run() -> str:
        if speak:
            async with TerminalSession(config.client) as session:
                return await session.respond(message)
        async with TerminalAPIClient(
            config.client.server_url, api_key=config.client.api_key
        ) as client:
            return await client.chat(message)

    try:
        reply = asyncio.run(_run())
    except APIClientError as e:
        raise fail(describe_error(e), e, debug) from None
    typer.echo(f"T-101: {reply}")


@app.command()
def voices(
    debug: bool = typer.Option(False, "--debug", help="Verbose logging"),
) -> None:
    """List the voices the server can synthesize with."""
    config = load_config()
    configure_logging(config, debug)

    async def _run() -> list[dict]:
        async with TerminalAPIClient(
            config.client.server_url, api_key=config.client.api_key
        ) as client:
            return await client.voices()

    try:
        available = asyncio.run(_run())
    except APIClientError as e:
        raise fail(describe_error(e), e, debug) from None

    typer.echo("Available voices:")
    for voice in available:
        category = f" [{voice['category']}]" if voice.get("category") else ""
        typer.echo(f"  {voice['voice_id']}: {voice['name']}{category}")


@app.command()
def terminal(
    max_ms: int | None = typer.Option(
        None, "--max-ms", help="Voice input budget in milliseconds"
    ),
    silent: bool = typer.Option(False, "--silent", help="Print replies without speaking"),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging"),
) -> None:
    """Interactive voice terminal."""
    config = load_config()
    configure_logging(config, debug)

    try:
        asyncio.run(run_terminal(config, max_ms=max_ms, silent=silent))
    except KeyboardInterrupt:
        typer.echo("\nTERMINATED.")


async def run_terminal(
    config: T101Config,
    max_ms: int | None = None,
    silent: bool = False,
    session: TerminalSession | None = None,
) -> None:
    """Read, answer and speak until the user quits."""
    options = SpeechOptions(silent=silent)
    async with session or TerminalSession(config.client) as active:
        typer.echo(BANNER)
        await active.speak("T-101 online.", options)

        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break

            message = line.strip()
            if message.lower() in EXIT_WORDS:
                break

            try:
                if not message:
                    typer.echo("LISTENING...")
                    message = await active.listen(max_ms)
                    typer.echo(f"YOU: {message}")
                reply = await active.client.chat(message)
            except (VoiceInputError, APIClientError, ProviderError) as e:
                logger.debug(f"Terminal turn failed: {e!r}")
                typer.echo(f"ERROR: {describe_error(e)}")
                continue

            typer.echo(f"T-101: {reply}")
            await active.speak(reply, options)

        typer.echo("TERMINAL OFFLINE.")


@cache_app.command("stats")
def cache_stats() -> None:
    """Show how much speech is cached locally."""
    config = load_config()
    stats = SpeechCache(get_cache_dir(config.paths.cache_dir)).stats()
    typer.echo(f"Cached utterances: {stats.items}")
    typer.echo(f"Total size: {stats.size_mb}")


@cache_app.command("clear")
def cache_clear(
    yes: bool = typer.Option(False, "-y", "--yes", help="Do not ask for confirmation"),
) -> None:
    """Delete every cached utterance."""
    config = load_config()
    if not yes:
        typer.confirm("Delete all cached speech?", abort=True)
    removed = SpeechCache(get_cache_dir(config.paths.cache_dir)).clear()
    typer.echo(f"Removed {removed} cached files")
