"""
Sentence-by-sentence speech playback.

The platform synthesizer is an external collaborator behind the
SpeechSynthesizer protocol. The sequencer guarantees:
- sentences are spoken in document order, each exactly once
- a sentence is only queued after the previous one finished (no overlap)
- blank sentences are skipped
- cancellation (stop, or a new play) is never reported as an error

Callbacks from a superseded run are ignored by comparing run numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from loguru import logger

from deutsch_meister.generation.errors import SPEECH_FAILED_MESSAGE, SpeechError

GERMAN_LOCALE = "de-DE"
CANCELLATION_ERRORS = frozenset({"canceled", "interrupted"})


@dataclass(frozen=True)
class Voice:
    name: str
    lang: str


class SpeechSynthesizer(Protocol):
    """Platform speech engine."""

    def voices(self) -> list[Voice]:
        ...

    def speak(
        self,
        text: str,
        voice: Voice | None,
        on_end: Callable[[], None],
        on_error: Callable[[str], None],
    ) -> None:
        """Queue ``text``; exactly one of the callbacks fires when it finishes."""
        ...

    def cancel(self) -> None:
        ...


def pick_german_voice(voices: list[Voice]) -> Voice | None:
    """Prefer a Google German voice, then any German voice."""
    german = [v for v in voices if v.lang == GERMAN_LOCALE]
    for voice in german:
        if "Google" in voice.name:
            return voice
    return german[0] if german else None


class SpeechSequencer:
    """Plays a list of sentences one after another."""

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        on_error: Callable[[SpeechError], None] | None = None,
    ):
        self.synthesizer = synthesizer
        self.on_error = on_error
        self.voice = pick_german_voice(synthesizer.voices())
        self.sentences: list[str] = []
        self.current_index: int | None = None
        self.is_speaking = False
        self._run = 0

    def play(self, sentences: list[str]) -> None:
        """Start from the first sentence, cancelling any playback in progress."""
        if self.is_speaking:
            self.stop()
        if not sentences:
            return

        self._run += 1
        self.sentences = list(sentences)
        self.is_speaking = True
        self._speak(self._run, 0)

    def stop(self) -> None:
        self._run += 1
        self.synthesizer.cancel()
        self._finish()

    def toggle(self, sentences: list[str]) -> None:
        if self.is_speaking:
            self.stop()
        else:
            self.play(sentences)

    def _finish(self) -> None:
        self.is_speaking = False
        self.current_index = None

    def _speak(self, run: int, index: int) -> None:
        # Blank sentences advance without speaking
        while index < len(self.sentences) and not self.sentences[index].strip():
            index += 1

        if index >= len(self.sentences):
            self._finish()
            return

        self.current_index = index
        self.synthesizer.speak(
            self.sentences[index],
            self.voice,
            on_end=lambda: self._on_end(run, index),
            on_error=lambda error: self._on_error(run, error),
        )

    def _on_end(self, run: int, index: int) -> None:
        if run != self._run or index != self.current_index:
            return
        self._speak(run, index + 1)

    def _on_error(self, run: int, error: str) -> None:
        if error in CANCELLATION_ERRORS or run != self._run:
            return

        logger.error(f"Speech synthesis failed: {error}")
        self._run += 1
        self._finish()
        if self.on_error:
            self.on_error(SpeechError(SPEECH_FAILED_MESSAGE))
