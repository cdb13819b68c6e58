"""NoteTokenizer: single-pass scanner turning a score body into RawTokens."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Final

from emscore.config import (
    DURATION_MARKS,
    FLAT_MARK,
    MAX_DEGREE,
    MAX_OCTAVE_SHIFT,
    MAX_SEMITONE_SHIFT,
    OCTAVE_MARK,
    SEPARATORS,
    SHARP_MARK,
    TOKEN_SEPARATOR,
)
from emscore.errors import ScoreSyntaxError
from emscore.score_models import Grammar, ParserState, RawToken

logger = logging.getLogger(__name__)

DEGREE_CHARS: Final[str] = "".join(str(d) for d in range(MAX_DEGREE + 1))
PITCH_MARKS: Final[frozenset[str]] = frozenset((SHARP_MARK, FLAT_MARK, OCTAVE_MARK))


# ── Duration grammars ────────────────────────────────────────────────────────

class DurationGrammar(ABC):
    """
    Abstract Strategy for reading the duration modifiers of one token.

    The tokenizer asks the grammar two questions about each character seen
    after the degree: does it end the token outright, and is it a duration
    mark. Duration marks switch the tokenizer into duration mode.
    """

    def ends_token(self, char: str) -> bool:
        """Return True if *char* is consumed and terminates the token."""
        return False

    def is_duration_mark(self, char: str) -> bool:
        return char in DURATION_MARKS

    @abstractmethod
    def accumulate(self, multiplier: float, char: str) -> float:
        """Fold the duration mark *char* into the running *multiplier*."""

    def finalize(self, multiplier: float) -> float:
        """A token without duration marks lasts exactly one beat."""
        return multiplier if multiplier > 0 else 1.0


class AdditiveGrammar(DurationGrammar):
    """
    Duration marks stack: ``1,,,`` lasts three beats, ``1,-`` one and a half.

    ``,`` = 1 beat, ``-`` = 1/2, ``.`` = 1/4, ``_`` = 2.
    """

    def accumulate(self, multiplier: float, char: str) -> float:
        return multiplier + DURATION_MARKS[char]


class SeparatorGrammar(DurationGrammar):
    """
    ``,`` only separates notes; the last of ``-``, ``.``, ``_`` sets the length.
    """

    def ends_token(self, char: str) -> bool:
        return char == TOKEN_SEPARATOR

    def is_duration_mark(self, char: str) -> bool:
        return char != TOKEN_SEPARATOR and char in DURATION_MARKS

    def accumulate(self, multiplier: float, char: str) -> float:
        return DURATION_MARKS[char]


def grammar_for(grammar: Grammar) -> DurationGrammar:
    """Return the DurationGrammar implementing *grammar*."""
    if grammar == Grammar.SEPARATOR:
        return SeparatorGrammar()
    return AdditiveGrammar()


# ── Tokenizer ────────────────────────────────────────────────────────────────

class NoteTokenizer:
    """
    Scans a score body left to right and yields one RawToken per note or rest.

    Token structure
    ---------------
    ::

        [`] degree [s | b | `]* [, | - | . | _]*

    1. **Prefix** – a leading backtick lowers the token by one octave.
    2. **Degree** – ``0`` is a rest, ``1``..``7`` are Do..Ti.
    3. **Modifiers** – the tokenizer starts in ``READING_PITCH``: ``s`` and
       ``b`` add a sharp or flat, a backtick raises the octave. The first
       duration mark moves it to ``READING_DURATION``. From then on a pitch
       mark is left unconsumed: it belongs to the next token (``1,`2`` is two
       tokens, the second one an octave down).

    Octave marks and accidentals on one token are clamped to
    ``MAX_OCTAVE_SHIFT`` and ``MAX_SEMITONE_SHIFT``.

    Characters are inspected with one-character lookahead and consumed only
    once classified. Separators (space, newline, carriage return) between
    tokens are skipped; any other unrecognized character is skipped too, or
    rejected with a ScoreSyntaxError when *strict* is set.
    """

    def __init__(self, grammar: Grammar | DurationGrammar = Grammar.ADDITIVE, strict: bool = False) -> None:
        self.grammar = grammar if isinstance(grammar, DurationGrammar) else grammar_for(grammar)
        self.strict = strict

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _starts_token(self, text: str, pos: int) -> bool:
        char = text[pos]
        if char in DEGREE_CHARS:
            return True
        return char == OCTAVE_MARK and pos + 1 < len(text) and text[pos + 1] in DEGREE_CHARS

    def _skip(self, text: str, pos: int) -> None:
        char = text[pos]
        if self.strict:
            if char == OCTAVE_MARK:
                raise ScoreSyntaxError("Octave prefix is not followed by a note", pos)
            raise ScoreSyntaxError(f"Unexpected character {char!r}", pos)
        logger.debug("Skipping %r at position %d", char, pos)

    def _bounded(self, value: int, limit: int, pos: int, what: str) -> int:
        if -limit <= value <= limit:
            return value
        if self.strict:
            raise ScoreSyntaxError(f"{what} exceed {limit} on one note", pos)
        logger.debug("%s clamped to %d at position %d", what, limit, pos)
        return max(-limit, min(value, limit))

    def _read_token(self, text: str, pos: int) -> tuple[RawToken, int]:
        start = pos
        octave_shift = 0
        semitone_shift = 0
        multiplier = 0.0

        if text[pos] == OCTAVE_MARK:
            octave_shift -= 1
            pos += 1

        degree = int(text[pos])
        pos += 1

        state = ParserState.READING_PITCH
        while pos < len(text):
            char = text[pos]

            if char in PITCH_MARKS:
                if state is ParserState.READING_DURATION:
                    break  # prefix of the next token
                if char == SHARP_MARK:
                    semitone_shift = self._bounded(semitone_shift + 1, MAX_SEMITONE_SHIFT, pos, "Accidentals")
                elif char == FLAT_MARK:
                    semitone_shift = self._bounded(semitone_shift - 1, MAX_SEMITONE_SHIFT, pos, "Accidentals")
                else:
                    octave_shift = self._bounded(octave_shift + 1, MAX_OCTAVE_SHIFT, pos, "Octave marks")
                pos += 1
                continue

            if self.grammar.ends_token(char):
                pos += 1
                break

            if self.grammar.is_duration_mark(char):
                multiplier = self.grammar.accumulate(multiplier, char)
                state = ParserState.READING_DURATION
                pos += 1
                continue

            break

        token = RawToken(
            degree=degree,
            octave_shift=octave_shift,
            semitone_shift=semitone_shift,
            duration_multiplier=self.grammar.finalize(multiplier),
            position=start,
        )
        return token, pos

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def tokenize(self, text: str, start: int = 0) -> Iterator[RawToken]:
        """
        Yield the tokens of *text* from index *start* onwards.

        Args:
            text:  Full score text (positions in tokens index into it).
            start: Offset of the note body, as returned by the header parser.

        Raises:
            ScoreSyntaxError: In strict mode, on the first unrecognized character.
        """
        pos = start
        while pos < len(text):
            if text[pos] in SEPARATORS:
                pos += 1
            elif self._starts_token(text, pos):
                token, pos = self._read_token(text, pos)
                yield token
            else:
                self._skip(text, pos)
                pos += 1

    def count(self, text: str, start: int = 0) -> int:
        """Number of tokens :meth:`tokenize` would yield."""
        return sum(1 for _ in self.tokenize(text, start))
