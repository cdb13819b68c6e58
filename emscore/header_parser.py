"""Header parser: reads the optional ``(bpm){beat_unit}`` prefix of a score."""

import logging

from emscore.config import (
    BEAT_UNIT_CLOSE,
    BEAT_UNIT_OPEN,
    BPM_CLOSE,
    BPM_OPEN,
    MAX_HEADER_DIGITS,
)
from emscore.errors import ScoreSyntaxError
from emscore.score_models import ParserSettings, TimeBase

logger = logging.getLogger(__name__)


def read_number(text: str, pos: int) -> tuple[int | None, int]:
    """
    Read an unsigned decimal integer starting at *pos*.

    Returns:
        ``(value, new_pos)``; value is None when no digit was found or the
        run is longer than ``MAX_HEADER_DIGITS``. *new_pos* is past the run.
    """
    end = pos
    while end < len(text) and text[end].isascii() and text[end].isdigit():
        end += 1
    if end == pos:
        return None, pos
    if end - pos > MAX_HEADER_DIGITS:
        return None, end
    return int(text[pos:end]), end


def _read_block(
    text: str,
    pos: int,
    opener: str,
    closer: str,
    settings: ParserSettings,
) -> tuple[int | None, int, bool]:
    """
    Read one ``<opener> digits <closer>`` block.

    Returns:
        ``(value, new_pos, closed)``. A missing closer leaves *new_pos* on the
        first unexpected character and ``closed`` False.
    """
    digits_start = pos + 1
    value, pos = read_number(text, digits_start)
    if value is None and settings.strict:
        if pos > digits_start:
            raise ScoreSyntaxError(f"Header value longer than {MAX_HEADER_DIGITS} digits", digits_start)
        raise ScoreSyntaxError(f"Expected digits after '{opener}'", pos)

    if pos < len(text) and text[pos] == closer:
        return value, pos + 1, True

    if settings.strict:
        raise ScoreSyntaxError(f"Unterminated header block, expected '{closer}'", pos)
    return value, pos, False


def parse_header(text: str, settings: ParserSettings | None = None) -> tuple[TimeBase, int]:
    """
    Parse the tempo header at the start of *text*.

    Recognizes ``(bpm)`` followed by ``{beat_unit}``, both optional. Missing
    closing delimiters end header scanning without failing; absent values fall
    back to the defaults in *settings*.

    Returns:
        ``(time_base, body_offset)`` where *body_offset* indexes the first
        character of the note body.

    Raises:
        ScoreSyntaxError: Only in strict mode, for malformed header blocks.
    """
    settings = settings or ParserSettings()
    bpm: int | None = None
    beat_unit: int | None = None
    pos = 0
    closed = True

    if text.startswith(BPM_OPEN):
        bpm_pos = pos
        bpm, pos, closed = _read_block(text, pos, BPM_OPEN, BPM_CLOSE, settings)
        if bpm == 0:
            if settings.strict:
                raise ScoreSyntaxError("Tempo must be greater than zero", bpm_pos + 1)
            logger.warning("Ignoring zero tempo; using %d BPM", settings.default_bpm)
            bpm = None

    if closed and text.startswith(BEAT_UNIT_OPEN, pos):
        unit_pos = pos
        beat_unit, pos, closed = _read_block(text, pos, BEAT_UNIT_OPEN, BEAT_UNIT_CLOSE, settings)
        if beat_unit == 0:
            if settings.strict:
                raise ScoreSyntaxError("Beat unit must be greater than zero", unit_pos + 1)
            beat_unit = None

    time_base = TimeBase.from_bpm(
        bpm if bpm is not None else settings.default_bpm,
        beat_unit if beat_unit is not None else settings.default_beat_unit,
    )
    logger.debug(
        "Header: %d BPM (%.3f ms/beat), beat unit %d, body at %d",
        time_base.bpm,
        time_base.ms_per_beat,
        time_base.beat_unit,
        pos,
    )
    return time_base, pos
