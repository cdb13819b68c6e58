"""Event calculator: resolves a RawToken into a concrete NoteEvent."""

import math

from emscore.config import (
    DEGREE_SEMITONES,
    REFERENCE_TONE,
    REST_DEGREE,
    SEMITONE_STEP,
    SEMITONES_PER_OCTAVE,
    ReferenceTone,
)
from emscore.score_models import NoteEvent, RawToken, TimeBase


def semitones_from_reference(
    degree: int,
    octave_shift: int = 0,
    semitone_shift: int = 0,
    reference_tone: ReferenceTone = REFERENCE_TONE,
) -> int:
    """
    Signed distance in semitones between a scale degree and the reference tone.

    Args:
        degree:         1..7 (Do..Ti).
        octave_shift:   Whole octaves up (positive) or down (negative).
        semitone_shift: Sharps (positive) or flats (negative).
        reference_tone: Tone whose ratio is 1.0.
    """
    return (
        DEGREE_SEMITONES[degree]
        + octave_shift * SEMITONES_PER_OCTAVE
        + semitone_shift
        - reference_tone.degree_offset
    )


def calculate_ratio(
    degree: int,
    octave_shift: int = 0,
    semitone_shift: int = 0,
    reference_tone: ReferenceTone = REFERENCE_TONE,
) -> float:
    """
    Equal-tempered frequency ratio of a note relative to *reference_tone*.

    Each semitone multiplies the frequency by 2^(1/12). The whole-octave part
    of the interval is applied as a power of two so that octave shifts double
    or halve the ratio exactly.

    Returns:
        The ratio, or 0.0 for a rest (degree 0).
    """
    if degree == REST_DEGREE:
        return 0.0

    total = semitones_from_reference(degree, octave_shift, semitone_shift, reference_tone)
    octaves, remainder = divmod(total, SEMITONES_PER_OCTAVE)
    return math.ldexp(SEMITONE_STEP**remainder, octaves)


def calculate_duration_ms(duration_multiplier: float, time_base: TimeBase) -> int:
    """Length of a token in whole milliseconds."""
    return round(time_base.ms_per_beat * duration_multiplier)


def calculate_event(
    token: RawToken,
    time_base: TimeBase,
    reference_tone: ReferenceTone = REFERENCE_TONE,
) -> NoteEvent:
    """Map *token* to a NoteEvent. Rests keep their duration."""
    return NoteEvent(
        ratio=calculate_ratio(
            token.degree,
            token.octave_shift,
            token.semitone_shift,
            reference_tone,
        ),
        duration_ms=calculate_duration_ms(token.duration_multiplier, time_base),
    )
