from __future__ import annotations

from .audio import SAMPLE_RATE, write_wav
from .config import EngineSettings, GenerationOptions
from .engine import MusicEngine, RenderResult, TrackMetadata, generate
from .errors import InvalidConfigError, RenderCancelledError, RenderFailedError, TunesmithError
from .harmony import select_tempo_and_progression
from .logging_utils import configure_logging as _configure_logging
from .profiles import GENRE_PROFILES, MOOD_PROFILES, GenreProfile, MoodProfile
from .renderer import OfflineRenderer
from .schema import ChordSymbol, Genre, InstrumentFocus, Mood, NoteLength
from .sequencer import NoteEvent, generate_notes
from .voices import Effect, Envelope, VoiceConfig, VoiceSet, build_voices
from .waveform import reduce_waveform

__all__ = [
    "SAMPLE_RATE",
    "ChordSymbol",
    "Effect",
    "EngineSettings",
    "Envelope",
    "GENRE_PROFILES",
    "GenerationOptions",
    "Genre",
    "GenreProfile",
    "InstrumentFocus",
    "InvalidConfigError",
    "MOOD_PROFILES",
    "Mood",
    "MoodProfile",
    "MusicEngine",
    "NoteEvent",
    "NoteLength",
    "OfflineRenderer",
    "RenderCancelledError",
    "RenderFailedError",
    "RenderResult",
    "TrackMetadata",
    "TunesmithError",
    "VoiceConfig",
    "VoiceSet",
    "build_voices",
    "generate",
    "generate_notes",
    "reduce_waveform",
    "select_tempo_and_progression",
    "write_wav",
]

__version__ = "0.1.0"

_configure_logging()
del _configure_logging
