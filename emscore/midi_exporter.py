"""MidiExporter: writes a compiled score to a Standard MIDI File."""

import logging

import numpy as np
from midiutil import MIDIFile

from emscore.score_models import CompiledScore, NoteEvent

logger = logging.getLogger(__name__)

# In midiutil Format 1 MIDI, track 0 is the conductor/tempo track.
TRACK_CONDUCTOR = 0  # Tempo/time signature only, never receives notes
TRACK_MELODY = 1

CHANNEL_MELODY = 0

MIDI_MIN_NOTE = 0
MIDI_MAX_NOTE = 127

# midiutil expects this many MIDI clocks per metronome tick (one per quarter).
CLOCKS_PER_TICK = 24


def ratio_to_midi(ratio: float, reference_midi_note: int) -> int:
    """
    Convert a frequency ratio to the nearest MIDI note number.

    Args:
        ratio:               Frequency relative to the reference tone (> 0).
        reference_midi_note: MIDI number of the reference tone (69 for A4).

    Returns:
        MIDI note number clamped to 0..127.
    """
    note = reference_midi_note + 12.0 * float(np.log2(ratio))
    return int(np.clip(round(note), MIDI_MIN_NOTE, MIDI_MAX_NOTE))


class MidiExporter:
    """
    Writes a single-voice MIDI file from a CompiledScore.

    Track layout (Format 1, 2 internal tracks)
    ------------------------------------------
    Track 0: conductor track with the header tempo and a time signature of
    ``beats_per_bar / beat_unit`` (omitted when beat_unit is not a power of two).

    Track 1: "Melody", one MIDI note per non-rest event. Rests write nothing
    but still advance the timeline.

    Timing
    ------
    Event durations are converted back to beats with the score's
    milliseconds-per-beat, so the file plays at the header tempo.
    """

    DEFAULT_VELOCITY = 96
    DEFAULT_BEATS_PER_BAR = 4

    def __init__(
        self,
        velocity: int = DEFAULT_VELOCITY,
        beats_per_bar: int = DEFAULT_BEATS_PER_BAR,
    ) -> None:
        """
        Args:
            velocity:      MIDI note-on velocity (0-127).
            beats_per_bar: Numerator of the written time signature.
        """
        self.velocity = velocity
        self.beats_per_bar = beats_per_bar

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _ms_to_beats(self, duration_ms: int, ms_per_beat: float) -> float:
        return duration_ms / ms_per_beat

    def _add_time_signature(self, midi: MIDIFile, beat_unit: int) -> None:
        # MIDI stores the denominator as a power of two.
        if beat_unit <= 0 or beat_unit & (beat_unit - 1):
            logger.debug("Beat unit %d is not a power of two; no time signature written", beat_unit)
            return
        midi.addTimeSignature(
            TRACK_CONDUCTOR,
            0,
            self.beats_per_bar,
            beat_unit.bit_length() - 1,
            CLOCKS_PER_TICK,
        )

    def _add_event(
        self,
        midi: MIDIFile,
        event: NoteEvent,
        start_beat: float,
        duration_beats: float,
        reference_midi_note: int,
    ) -> None:
        if event.is_rest or duration_beats <= 0:
            return
        midi.addNote(
            track=TRACK_MELODY,
            channel=CHANNEL_MELODY,
            pitch=ratio_to_midi(event.ratio, reference_midi_note),
            time=start_beat,
            duration=duration_beats,
            volume=self.velocity,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, score: CompiledScore) -> MIDIFile:
        """Build the in-memory MIDIFile for *score*."""
        time_base = score.time_base
        reference_midi_note = score.reference_tone.midi_note

        midi = MIDIFile(numTracks=2, removeDuplicates=False, deinterleave=False)
        midi.addTempo(TRACK_CONDUCTOR, 0, time_base.bpm)
        self._add_time_signature(midi, time_base.beat_unit)
        midi.addTrackName(TRACK_MELODY, 0, "Melody")

        start_beat = 0.0
        for event in score:
            duration_beats = self._ms_to_beats(event.duration_ms, time_base.ms_per_beat)
            self._add_event(midi, event, start_beat, duration_beats, reference_midi_note)
            start_beat += duration_beats

        return midi

    def export(self, score: CompiledScore, output_path: str) -> None:
        """
        Render *score* to a Standard MIDI File.

        Args:
            score:       Compiled score to write.
            output_path: Destination file path (e.g. "melody.mid").

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        midi = self.build(score)
        with open(output_path, "wb") as f:
            midi.writeFile(f)
        logger.debug("Wrote %d event(s) to %s", len(score), output_path)
