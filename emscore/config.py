"""Fixed constants shared by the score compiler."""

from enum import Enum
from typing import Final

# ── Header defaults ─────────────────────────────────────────────────────────
DEFAULT_BPM: Final[int] = 120
DEFAULT_BEAT_UNIT: Final[int] = 4
MS_PER_MINUTE: Final[float] = 60000.0

#: Longer digit runs in a header block are treated as unparsable.
MAX_HEADER_DIGITS: Final[int] = 9

# ── Pitch ───────────────────────────────────────────────────────────────────
SEMITONES_PER_OCTAVE: Final[int] = 12
SEMITONE_STEP: Final[float] = 2.0 ** (1.0 / SEMITONES_PER_OCTAVE)

#: Semitones above the tonic for degrees 1..7 (Do Re Mi Fa Sol La Ti).
#: Index 0 is the rest slot and is never looked up.
DEGREE_SEMITONES: Final[tuple[int, ...]] = (0, 0, 2, 4, 5, 7, 9, 11)

REST_DEGREE: Final[int] = 0
MAX_DEGREE: Final[int] = 7

#: Accumulated pitch modifiers on one token are clamped to these magnitudes.
MAX_OCTAVE_SHIFT: Final[int] = 10
MAX_SEMITONE_SHIFT: Final[int] = 24

# ── Notation characters ─────────────────────────────────────────────────────
OCTAVE_MARK: Final[str] = "`"
SHARP_MARK: Final[str] = "s"
FLAT_MARK: Final[str] = "b"
SEPARATORS: Final[frozenset[str]] = frozenset(" \n\r")

BPM_OPEN, BPM_CLOSE = "(", ")"
BEAT_UNIT_OPEN, BEAT_UNIT_CLOSE = "{", "}"

#: Beats contributed by each duration modifier.
DURATION_MARKS: Final[dict[str, float]] = {
    ",": 1.0,
    "-": 0.5,
    ".": 0.25,
    "_": 2.0,
}

#: In the separator grammar ``,`` only ends a token.
TOKEN_SEPARATOR: Final[str] = ","


# ── Reference tone ──────────────────────────────────────────────────────────

class ReferenceTone(Enum):
    """
    The pitch whose frequency ratio is defined as 1.0.

    Attributes:
        label:         Name used on the command line.
        degree_offset: Semitones between the scale tonic (degree 1) and this tone.
        midi_note:     MIDI note number of the tone in the reference octave.
        frequency_hz:  Absolute frequency of the tone.
    """

    CONCERT_A = ("concert-a", 9, 69, 440.0)
    TONIC = ("tonic", 0, 60, 261.6255653005986)

    def __init__(self, label: str, degree_offset: int, midi_note: int, frequency_hz: float) -> None:
        self.label = label
        self.degree_offset = degree_offset
        self.midi_note = midi_note
        self.frequency_hz = frequency_hz

    @classmethod
    def from_label(cls, label: str) -> "ReferenceTone":
        for tone in cls:
            if tone.label == label.strip().lower():
                return tone
        raise ValueError(f"Unknown reference tone '{label}'.")


#: Every ratio is relative to concert A (A4 = 440 Hz) unless a caller
#: explicitly asks for another reference.
REFERENCE_TONE: Final[ReferenceTone] = ReferenceTone.CONCERT_A
