"""emscore CLI entry point."""

import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, TextIO

import click

from emscore import __version__
from emscore.compiler import ScoreCompiler
from emscore.config import ReferenceTone
from emscore.errors import ScoreSyntaxError
from emscore.midi_exporter import MidiExporter
from emscore.score_models import CompiledScore, Grammar, ParserSettings

REFERENCE_LABELS = [tone.label for tone in ReferenceTone]


def _parse_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options shared by every command that compiles a score."""
    options = [
        click.option(
            "--grammar",
            type=click.Choice([g.value for g in Grammar], case_sensitive=False),
            default=Grammar.ADDITIVE.value,
            show_default=True,
            help="Duration grammar: 'additive' stacks , - . _ marks; "
            "'separator' treats ',' as a note separator.",
        ),
        click.option(
            "--reference",
            type=click.Choice(REFERENCE_LABELS, case_sensitive=False),
            default=ReferenceTone.CONCERT_A.label,
            show_default=True,
            help="Tone with ratio 1.0: concert A (440 Hz) or the scale tonic (Do).",
        ),
        click.option(
            "--strict",
            is_flag=True,
            default=False,
            help="Reject malformed headers and unknown characters instead of skipping them.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_settings(grammar: str, reference: str, strict: bool) -> ParserSettings:
    return ParserSettings(
        grammar=Grammar(grammar.lower()),
        reference_tone=ReferenceTone.from_label(reference),
        strict=strict,
    )


def _compile_or_exit(score_file: TextIO, settings: ParserSettings) -> tuple[ScoreCompiler, str, CompiledScore]:
    compiler = ScoreCompiler(settings)
    text = score_file.read()
    try:
        return compiler, text, compiler.compile(text)
    except ScoreSyntaxError as exc:
        click.echo(f"  ERROR: {exc}", err=True)
        sys.exit(1)
    except ValueError as exc:
        click.echo(f"  ERROR: Could not compile score — {exc}", err=True)
        sys.exit(1)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="emscore")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log parser decisions to stderr.")
def main(verbose: bool) -> None:
    """emscore — compile numbered-notation scores into note events."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── compile subcommand ─────────────────────────────────────────────────────────

@main.command(name="compile")
@click.argument("score_file", type=click.File("r", encoding="utf-8"))
@_parse_options
@click.option("--json", "as_json", is_flag=True, default=False, help="Print events as a JSON array.")
@click.option(
    "--packed",
    is_flag=True,
    default=False,
    help="Use the two-pass pre-sized buffer (float32 ratios).",
)
def compile_command(
    score_file: TextIO,
    grammar: str,
    reference: str,
    strict: bool,
    as_json: bool,
    packed: bool,
) -> None:
    """
    Compile a score and print its note events.

    SCORE_FILE is a text file in numbered notation, or '-' for stdin.

    \b
    Examples:
      emscore compile melody.txt
      echo "(120)1,2,3,0,5_" | emscore compile - --json
      emscore compile melody.txt --grammar separator --reference tonic
    """
    settings = _build_settings(grammar, reference, strict)
    compiler, text, score = _compile_or_exit(score_file, settings)

    if packed:
        buffer = compiler.compile_packed(text)
        rows = [(float(ratio), int(duration_ms)) for ratio, duration_ms in buffer]
    else:
        rows = [(event.ratio, event.duration_ms) for event in score]

    reference_hz = settings.reference_tone.frequency_hz

    if as_json:
        payload = [
            {"ratio": ratio, "duration_ms": duration_ms, "frequency": reference_hz * ratio}
            for ratio, duration_ms in rows
        ]
        click.echo(json.dumps(payload))
        return

    time_base = score.time_base
    click.echo(f"emscore v{__version__}")
    click.echo(f"  Tempo  : {time_base.bpm} BPM ({time_base.ms_per_beat:.2f} ms/beat)")
    click.echo(f"  Beat   : 1/{time_base.beat_unit}")
    click.echo(f"  Events : {len(rows)}  |  Total: {score.total_duration_ms} ms")
    click.echo()
    for idx, (ratio, duration_ms) in enumerate(rows):
        if ratio == 0.0:
            click.echo(f"  {idx:4d}  rest      {duration_ms:6d} ms")
        else:
            click.echo(f"  {idx:4d}  {ratio:8.5f}  {duration_ms:6d} ms  {reference_hz * ratio:8.2f} Hz")


# ── midi subcommand ────────────────────────────────────────────────────────────

@main.command()
@click.argument("score_file", type=click.File("r", encoding="utf-8"))
@_parse_options
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination MIDI file path. Defaults to <score-file-stem>.mid.",
)
@click.option(
    "--velocity",
    type=click.IntRange(1, 127),
    default=MidiExporter.DEFAULT_VELOCITY,
    show_default=True,
    help="MIDI note-on velocity.",
)
def midi(
    score_file: TextIO,
    grammar: str,
    reference: str,
    strict: bool,
    output: str | None,
    velocity: int,
) -> None:
    """
    Compile a score and save it as a MIDI file.

    SCORE_FILE is a text file in numbered notation, or '-' for stdin.

    \b
    Examples:
      emscore midi melody.txt
      emscore midi melody.txt -o melody.mid --velocity 80
    """
    settings = _build_settings(grammar, reference, strict)
    _compiler, _text, score = _compile_or_exit(score_file, settings)

    if output is None:
        name = getattr(score_file, "name", "-")
        stem = Path(name).stem if name not in ("-", "<stdin>") else "score"
        output = f"{stem}.mid"

    click.echo(f"Writing {len(score)} event(s) → '{output}'...")
    exporter = MidiExporter(velocity=velocity)
    try:
        exporter.export(score, output)
    except OSError as exc:
        click.echo(f"  ERROR: Could not write MIDI file — {exc}", err=True)
        sys.exit(1)

    click.echo(f"Done!  Open '{output}' in any MIDI player.")
