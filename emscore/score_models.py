"""Value types produced and consumed by the score compiler."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum, StrEnum

import numpy as np

from emscore.config import (
    DEFAULT_BEAT_UNIT,
    DEFAULT_BPM,
    MS_PER_MINUTE,
    REFERENCE_TONE,
    ReferenceTone,
)

#: Packed layout of one event for pre-sized buffers (float ratio, uint32 ms).
NOTE_DTYPE = np.dtype([("ratio", np.float32), ("duration_ms", np.uint32)])


class Grammar(StrEnum):
    """Duration grammars understood by the note tokenizer."""

    ADDITIVE = "additive"
    SEPARATOR = "separator"


class ParserState(Enum):
    """Which modifier family the tokenizer is currently reading."""

    READING_PITCH = "pitch"
    READING_DURATION = "duration"


@dataclass(frozen=True)
class NoteEvent:
    """
    One playable note or rest.

    Attributes:
        ratio:       Frequency relative to the reference tone; 0.0 is a rest.
        duration_ms: Playback duration in milliseconds.
    """

    ratio: float
    duration_ms: int

    @property
    def is_rest(self) -> bool:
        return self.ratio == 0.0

    def frequency(self, reference_frequency: float = REFERENCE_TONE.frequency_hz) -> float:
        """Absolute frequency in Hz, or 0.0 for a rest."""
        return reference_frequency * self.ratio


@dataclass(frozen=True)
class RawToken:
    """
    A recognized note or rest before pitch and duration are resolved.

    Attributes:
        degree:              0 for a rest, 1..7 for Do..Ti.
        octave_shift:        Signed octave displacement.
        semitone_shift:      Signed count of sharps (+1) and flats (-1).
        duration_multiplier: Length of the token in beats.
        position:            Index of the token's first character in the score.
    """

    degree: int
    octave_shift: int = 0
    semitone_shift: int = 0
    duration_multiplier: float = 1.0
    position: int = 0

    @property
    def is_rest(self) -> bool:
        return self.degree == 0


@dataclass(frozen=True)
class TimeBase:
    """Tempo information read from the score header."""

    bpm: int
    ms_per_beat: float
    beat_unit: int = DEFAULT_BEAT_UNIT

    @classmethod
    def from_bpm(cls, bpm: int, beat_unit: int = DEFAULT_BEAT_UNIT) -> TimeBase:
        """
        Build a time base for *bpm* beats per minute.

        Raises:
            ValueError: If *bpm* is not positive.
        """
        if bpm <= 0:
            raise ValueError(f"Tempo must be a positive number of beats per minute, got {bpm}.")
        return cls(bpm=bpm, ms_per_beat=MS_PER_MINUTE / bpm, beat_unit=beat_unit)


@dataclass(frozen=True)
class ParserSettings:
    """Options controlling how a score is compiled."""

    default_bpm: int = DEFAULT_BPM
    default_beat_unit: int = DEFAULT_BEAT_UNIT
    grammar: Grammar = Grammar.ADDITIVE
    reference_tone: ReferenceTone = REFERENCE_TONE
    strict: bool = False


@dataclass
class CompiledScore:
    """
    The ordered result of compiling a score.

    Behaves as a read-only sequence of :class:`NoteEvent` objects.
    """

    time_base: TimeBase
    events: list[NoteEvent] = field(default_factory=list)
    reference_tone: ReferenceTone = REFERENCE_TONE

    def __len__(self) -> int:
        return len(self.events)

    def __getitem__(self, index: int) -> NoteEvent:
        return self.events[index]

    def __iter__(self) -> Iterator[NoteEvent]:
        return iter(self.events)

    @property
    def total_duration_ms(self) -> int:
        return sum(event.duration_ms for event in self.events)

    def to_array(self) -> np.ndarray:
        """Pack the events into a structured array of :data:`NOTE_DTYPE`."""
        packed = np.zeros(len(self.events), dtype=NOTE_DTYPE)
        for idx, event in enumerate(self.events):
            packed[idx] = (event.ratio, event.duration_ms)
        return packed
