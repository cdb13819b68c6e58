"""emscore — compile numbered (jianpu-style) notation into note events."""

__version__ = "0.1.0"

from emscore.compiler import (  # noqa: E402
    ScoreCompiler,
    compile_score,
    compile_score_packed,
    count_notes,
)
from emscore.config import REFERENCE_TONE, ReferenceTone  # noqa: E402
from emscore.errors import ScoreSyntaxError  # noqa: E402
from emscore.score_models import (  # noqa: E402
    NOTE_DTYPE,
    CompiledScore,
    Grammar,
    NoteEvent,
    ParserSettings,
    TimeBase,
)

__all__ = [
    "NOTE_DTYPE",
    "REFERENCE_TONE",
    "CompiledScore",
    "Grammar",
    "NoteEvent",
    "ParserSettings",
    "ReferenceTone",
    "ScoreCompiler",
    "ScoreSyntaxError",
    "TimeBase",
    "__version__",
    "compile_score",
    "compile_score_packed",
    "count_notes",
]
