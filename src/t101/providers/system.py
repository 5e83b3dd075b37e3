"""On-device speech synthesis using the operating system's TTS command.

``say`` on macOS, ``espeak`` on Linux and SAPI through PowerShell on Windows.
This is the native fallback of the speech queue, so it never touches the
network.
"""

import asyncio
import logging
import os
import platform
import shutil
import tempfile
from pathlib import Path

from ..tts.models import VoiceInfo, VoiceSettings
from .base import TTSProvider

logger = logging.getLogger(__name__)

SUPPORTED_PLATFORMS = ("Darwin", "Linux", "Windows")

# Slightly slow and low, the way the terminal persona speaks
DEFAULT_RATE_WPM = 160
DEFAULT_PITCH = 35


async def _run(*cmd: str, env: dict[str, str] | None = None) -> bytes:
    """Run a command and return stdout, raising on a non-zero exit."""
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=env,
    )
    stdout, stderr = await proc.communicate()
    if proc.returncode != 0:
        raise RuntimeError(
            f"{cmd[0]} failed with code {proc.returncode}: {stderr.decode(errors='replace')}"
        )
    return stdout


class SystemTTSProvider(TTSProvider):
    """System TTS provider using native OS commands.

    Audio quality is robotic compared to the remote voices.
    """

    name = "system"

    def __init__(self, system: str | None = None) -> None:
        """Detect the platform once.

        Raises:
            RuntimeError: If the platform has no supported TTS command.
        """
        self.platform = system or platform.system()
        if self.platform not in SUPPORTED_PLATFORMS:
            raise RuntimeError(f"Unsupported platform: {self.platform}")

    def is_available(self) -> bool:
        """Whether the platform's TTS command can be found on PATH."""
        command = {"Darwin": "say", "Linux": "espeak", "Windows": "powershell"}
        return shutil.which(command[self.platform]) is not None

    async def synthesize(
        self,
        text: str,
        voice: str | None = None,
        model_id: str | None = None,
        settings: VoiceSettings | None = None,
    ) -> bytes:
        """Convert text to speech using native OS commands.

        ``model_id`` and ``settings`` have no meaning for system voices and
        are ignored.

        Returns:
            Audio data as WAV bytes

        Raises:
            ValueError: If text is empty
            RuntimeError: If the TTS command fails or is missing
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        if not self.is_available():
            raise RuntimeError(f"No speech synthesis command available on {self.platform}")

        with tempfile.TemporaryDirectory(prefix="t101-tts-") as tmp:
            output_path = Path(tmp) / "speech.wav"

            if self.platform == "Darwin":
                aiff_path = Path(tmp) / "speech.aiff"
                cmd = ["say", "-r", str(DEFAULT_RATE_WPM), "-o", str(aiff_path)]
                if voice:
                    cmd.extend(["-v", voice])
                cmd.append(text)
                await _run(*cmd)
                # Convert AIFF to WAV so every platform returns the same format
                await _run(
                    "afconvert", "-f", "WAVE", "-d", "LEI16", str(aiff_path), str(output_path)
                )

            elif self.platform == "Linux":
                cmd = [
                    "espeak",
                    "-s",
                    str(DEFAULT_RATE_WPM),
                    "-p",
                    str(DEFAULT_PITCH),
                    "-w",
                    str(output_path),
                ]
                if voice:
                    cmd.extend(["-v", voice])
                cmd.append(text)
                await _run(*cmd)

            else:
                # Text and path travel as env vars so quoting in the text
                # cannot break out of the script
                ps_script = (
                    "Add-Type -AssemblyName System.Speech;"
                    "$s = New-Object System.Speech.Synthesis.SpeechSynthesizer;"
                    "$s.SetOutputToWaveFile($env:T101_TTS_OUT);"
                    "if ($env:T101_TTS_VOICE) { $s.SelectVoice($env:T101_TTS_VOICE) };"
                    "$s.Speak($env:T101_TTS_TEXT);"
                    "$s.Dispose()"
                )
                env = {
                    **os.environ,
                    "T101_TTS_OUT": str(output_path),
                    "T101_TTS_TEXT": text,
                    "T101_TTS_VOICE": voice or "",
                }
                await _run("powershell", "-Command", ps_script, env=env)

            audio = output_path.read_bytes()

        logger.debug(f"System TTS produced {len(audio)} bytes on {self.platform}")
        return audio

    async def list_voices(self) -> list[VoiceInfo]:
        """List available system voices.

        Always returns at least a default voice.
        """
        voices: list[VoiceInfo] = []

        try:
            if self.platform == "Darwin":
                output = (await _run("say", "-v", "?")).decode()
                # Format: "Voice Name     Language  # Description"
                for line in output.splitlines():
                    parts = line.split()
                    if parts and not line.startswith("#"):
                        voices.append(VoiceInfo(voice_id=parts[0], name=parts[0]))

            elif self.platform == "Linux":
                output = (await _run("espeak", "--voices")).decode()
                for line in output.splitlines()[1:]:  # Skip header
                    parts = line.split()
                    if len(parts) >= 4:
                        voices.append(
                            VoiceInfo(voice_id=parts[1], name=parts[3], category=parts[2])
                        )

            else:
                script = (
                    "Add-Type -AssemblyName System.Speech;"
                    "(New-Object System.Speech.Synthesis.SpeechSynthesizer)"
                    ".GetInstalledVoices() | ForEach-Object { $_.VoiceInfo.Name }"
                )
                output = (await _run("powershell", "-Command", script)).decode()
                for line in output.splitlines():
                    if line.strip():
                        voices.append(VoiceInfo(voice_id=line.strip(), name=line.strip()))

        except (RuntimeError, FileNotFoundError) as e:
            logger.warning(f"Failed to list system voices: {e}")

        if not voices:
            voices.append(VoiceInfo(voice_id="default", name="Default System Voice"))

        return voices
