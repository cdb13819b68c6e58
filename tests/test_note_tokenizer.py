"""Unit tests for NoteTokenizer and its duration grammars."""

import pytest

from emscore.config import MAX_OCTAVE_SHIFT, MAX_SEMITONE_SHIFT
from emscore.errors import ScoreSyntaxError
from emscore.note_tokenizer import (
    AdditiveGrammar,
    NoteTokenizer,
    SeparatorGrammar,
    grammar_for,
)
from emscore.score_models import Grammar, RawToken


def _tokens(text: str, grammar: Grammar = Grammar.ADDITIVE) -> list[RawToken]:
    return list(NoteTokenizer(grammar).tokenize(text))


# ---------------------------------------------------------------------------
# Additive grammar
# ---------------------------------------------------------------------------

def test_bare_degree_lasts_one_beat() -> None:
    [token] = _tokens("5")
    assert token.degree == 5
    assert token.octave_shift == 0
    assert token.semitone_shift == 0
    assert token.duration_multiplier == 1.0


def test_duration_marks_accumulate() -> None:
    assert _tokens("1,,,")[0].duration_multiplier == 3.0
    assert _tokens("1,-")[0].duration_multiplier == 1.5
    assert _tokens("1.")[0].duration_multiplier == 0.25
    assert _tokens("1_,")[0].duration_multiplier == 3.0
    assert _tokens("1-.")[0].duration_multiplier == 0.75


def test_pitch_modifiers_before_duration() -> None:
    [token] = _tokens("4s`,-")
    assert token.degree == 4
    assert token.semitone_shift == 1
    assert token.octave_shift == 1
    assert token.duration_multiplier == 1.5


def test_flats_and_repeated_accidentals() -> None:
    assert _tokens("3b,")[0].semitone_shift == -1
    assert _tokens("3ss,")[0].semitone_shift == 2
    assert _tokens("3sb,")[0].semitone_shift == 0


def test_prefix_and_suffix_octave_marks() -> None:
    assert _tokens("`1,")[0].octave_shift == -1
    assert _tokens("1``,")[0].octave_shift == 2
    assert _tokens("`1`,")[0].octave_shift == 0


def test_backtick_after_duration_starts_next_token() -> None:
    first, second = _tokens("1,`2,")
    assert first.degree == 1
    assert first.octave_shift == 0
    assert second.degree == 2
    assert second.octave_shift == -1
    assert second.position == 2


def test_accidental_after_duration_is_not_consumed() -> None:
    tokens = _tokens("1,s2,")
    assert [t.degree for t in tokens] == [1, 2]
    assert tokens[0].semitone_shift == 0
    assert tokens[1].semitone_shift == 0


def test_adjacent_degrees_are_separate_tokens() -> None:
    tokens = _tokens("3`-2s`,")
    assert [t.degree for t in tokens] == [3, 2]
    assert tokens[0].octave_shift == 1
    assert tokens[0].duration_multiplier == 0.5
    assert tokens[1].semitone_shift == 1


def test_rest_keeps_modifiers_harmlessly() -> None:
    [token] = _tokens("0s`,,")
    assert token.is_rest
    assert token.duration_multiplier == 2.0


def test_separators_and_unknown_characters_are_skipped() -> None:
    tokens = _tokens(" 1,\r\n 8 9 x 2, ")
    assert [t.degree for t in tokens] == [1, 2]


def test_dangling_backtick_produces_no_token() -> None:
    assert [t.degree for t in _tokens("1,`")] == [1]
    assert [t.degree for t in _tokens("` 1")] == [1]


def test_positions_are_absolute() -> None:
    text = "(120) 1 `2"
    tokens = list(NoteTokenizer().tokenize(text, start=5))
    assert [t.position for t in tokens] == [6, 8]


def test_empty_body() -> None:
    assert _tokens("") == []
    assert _tokens("   \n") == []


def test_count_matches_tokenize() -> None:
    tokenizer = NoteTokenizer()
    text = "1,2-3.`4_5s`,0,,x9"
    assert tokenizer.count(text) == len(list(tokenizer.tokenize(text))) == 6


# ---------------------------------------------------------------------------
# Separator grammar
# ---------------------------------------------------------------------------

def test_separator_comma_ends_token_without_duration() -> None:
    tokens = _tokens("1,2,3", Grammar.SEPARATOR)
    assert [t.degree for t in tokens] == [1, 2, 3]
    assert all(t.duration_multiplier == 1.0 for t in tokens)


def test_separator_last_duration_mark_wins() -> None:
    tokens = _tokens("1-,2_,3-_.", Grammar.SEPARATOR)
    assert [t.duration_multiplier for t in tokens] == [0.5, 2.0, 0.25]


def test_separator_pitch_mark_after_duration_starts_next_token() -> None:
    first, second = _tokens("1-`2", Grammar.SEPARATOR)
    assert first.duration_multiplier == 0.5
    assert second.octave_shift == -1


def test_grammars_differ_on_same_text() -> None:
    text = "1,,"
    assert _tokens(text, Grammar.ADDITIVE)[0].duration_multiplier == 2.0
    assert _tokens(text, Grammar.SEPARATOR)[0].duration_multiplier == 1.0


def test_grammar_for() -> None:
    assert isinstance(grammar_for(Grammar.ADDITIVE), AdditiveGrammar)
    assert isinstance(grammar_for(Grammar.SEPARATOR), SeparatorGrammar)


def test_tokenizer_accepts_grammar_instance() -> None:
    tokenizer = NoteTokenizer(SeparatorGrammar())
    assert [t.duration_multiplier for t in tokenizer.tokenize("1-,2")] == [0.5, 1.0]


# ---------------------------------------------------------------------------
# Strict mode
# ---------------------------------------------------------------------------

def test_strict_rejects_unknown_character() -> None:
    with pytest.raises(ScoreSyntaxError) as excinfo:
        list(NoteTokenizer(strict=True).tokenize("1,9,"))
    assert excinfo.value.position == 2


def test_strict_rejects_accidental_after_duration() -> None:
    with pytest.raises(ScoreSyntaxError) as excinfo:
        list(NoteTokenizer(strict=True).tokenize("1,s"))
    assert excinfo.value.position == 2


def test_strict_rejects_dangling_backtick() -> None:
    with pytest.raises(ScoreSyntaxError, match="Octave prefix"):
        list(NoteTokenizer(strict=True).tokenize("1,`"))


def test_strict_accepts_well_formed_body() -> None:
    tokens = list(NoteTokenizer(strict=True).tokenize("1, 2s`-\n`3_ 0,"))
    assert [t.degree for t in tokens] == [1, 2, 3, 0]


# ---------------------------------------------------------------------------
# Modifier bounds
# ---------------------------------------------------------------------------

def test_octave_marks_are_clamped() -> None:
    [token] = _tokens("1" + "`" * 1100 + ",")
    assert token.octave_shift == MAX_OCTAVE_SHIFT
    assert token.duration_multiplier == 1.0


def test_accidentals_are_clamped_both_ways() -> None:
    assert _tokens("1" + "b" * 13000 + ",")[0].semitone_shift == -MAX_SEMITONE_SHIFT
    assert _tokens("1" + "s" * 100)[0].semitone_shift == MAX_SEMITONE_SHIFT


def test_clamping_keeps_following_tokens() -> None:
    tokens = _tokens("2" + "s" * 50 + "-3,")
    assert [t.degree for t in tokens] == [2, 3]
    assert tokens[0].duration_multiplier == 0.5


def test_strict_rejects_too_many_octave_marks() -> None:
    with pytest.raises(ScoreSyntaxError) as excinfo:
        list(NoteTokenizer(strict=True).tokenize("1" + "`" * 11 + ","))
    assert excinfo.value.position == 11


def test_strict_rejects_too_many_accidentals() -> None:
    with pytest.raises(ScoreSyntaxError) as excinfo:
        list(NoteTokenizer(strict=True).tokenize("1" + "b" * 25))
    assert excinfo.value.position == 25
