"""ScoreCompiler: turns score text into an ordered sequence of NoteEvents."""

import logging

import numpy as np

from emscore.event_calculator import calculate_event
from emscore.header_parser import parse_header
from emscore.note_tokenizer import NoteTokenizer
from emscore.score_models import NOTE_DTYPE, CompiledScore, ParserSettings

logger = logging.getLogger(__name__)


class ScoreCompiler:
    """
    Compiles jianpu-style score text into note events.

    Pipeline
    --------
    1. **Header** – ``(bpm){beat_unit}`` sets the time base.
    2. **Tokens** – the body is scanned into RawTokens.
    3. **Events** – each token becomes a NoteEvent (ratio, duration_ms).

    Two buffer strategies produce the same events:

    - :meth:`compile` grows a list while scanning once.
    - :meth:`compile_packed` counts the tokens first, allocates a structured
      array of exactly that size, then fills it in a second pass. Use it when
      the result is handed to code that expects a fixed-size buffer.

    The compiler keeps no state between calls; one instance can be shared.
    """

    def __init__(self, settings: ParserSettings | None = None) -> None:
        self.settings = settings or ParserSettings()
        self.tokenizer = NoteTokenizer(self.settings.grammar, strict=self.settings.strict)

    def count_notes(self, text: str) -> int:
        """First pass: number of events :meth:`compile` will produce."""
        _time_base, body_start = parse_header(text, self.settings)
        return self.tokenizer.count(text, body_start)

    def compile(self, text: str) -> CompiledScore:
        """
        Compile *text* into a CompiledScore.

        Raises:
            ScoreSyntaxError: Only in strict mode.
        """
        time_base, body_start = parse_header(text, self.settings)
        reference_tone = self.settings.reference_tone

        score = CompiledScore(time_base=time_base, reference_tone=reference_tone)
        for token in self.tokenizer.tokenize(text, body_start):
            score.events.append(calculate_event(token, time_base, reference_tone))

        logger.debug("Compiled %d event(s), %d ms total", len(score), score.total_duration_ms)
        return score

    def compile_packed(self, text: str) -> np.ndarray:
        """
        Compile *text* into a pre-sized structured array of ``NOTE_DTYPE``.

        Raises:
            ScoreSyntaxError: Only in strict mode.
        """
        time_base, body_start = parse_header(text, self.settings)
        reference_tone = self.settings.reference_tone

        size = self.tokenizer.count(text, body_start)
        packed = np.zeros(size, dtype=NOTE_DTYPE)
        for idx, token in enumerate(self.tokenizer.tokenize(text, body_start)):
            event = calculate_event(token, time_base, reference_tone)
            packed[idx] = (event.ratio, event.duration_ms)

        logger.debug("Packed %d event(s) into a %d-byte buffer", size, packed.nbytes)
        return packed


def compile_score(text: str, settings: ParserSettings | None = None) -> CompiledScore:
    """Compile *text* with a growable event list."""
    return ScoreCompiler(settings).compile(text)


def compile_score_packed(text: str, settings: ParserSettings | None = None) -> np.ndarray:
    """Compile *text* with the two-pass, pre-sized buffer strategy."""
    return ScoreCompiler(settings).compile_packed(text)


def count_notes(text: str, settings: ParserSettings | None = None) -> int:
    """Number of note and rest events in *text*."""
    return ScoreCompiler(settings).count_notes(text)
