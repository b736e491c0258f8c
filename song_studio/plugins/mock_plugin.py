"""Offline backend returning deterministic content, for development and demos."""

from __future__ import annotations

import base64
import logging
import struct

from song_studio.models.generation import (
    BiasCheck,
    ImageGenerationParams,
    LyricAnalysisResult,
    LyricalMetrics,
    LyricsGenerationParams,
    LyricsResult,
    LyricSuggestion,
    MidiGenerationParams,
    MusicalMetrics,
    SongEvaluationMetrics,
)
from song_studio.models.plugin import PluginIdentity
from song_studio.models.song import split_lyric_sections
from song_studio.plugins.base import BaseModelPlugin

log = logging.getLogger(__name__)

NOTE_OFFSETS = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}
MAJOR_SCALE = (0, 2, 4, 5, 7, 9, 11, 12)
MINOR_SCALE = (0, 2, 3, 5, 7, 8, 10, 12)
TICKS_PER_BEAT = 480


def _root_note(key: str) -> tuple[int, bool]:
    """Map a key such as 'F#-Minor' to (MIDI root note in octave 4, is_minor)."""
    name, _, mode = key.partition("-")
    name = name.strip() or "C"
    pitch = NOTE_OFFSETS.get(name[0].upper(), 0)
    for accidental in name[1:]:
        pitch += 1 if accidental == "#" else -1 if accidental == "b" else 0
    return 60 + pitch % 12, mode.strip().lower().startswith("min")


def _vlq(value: int) -> bytes:
    """Encode a MIDI variable-length quantity."""
    out = [value & 0x7F]
    value >>= 7
    while value:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(out))


def build_scale_midi(key: str, bpm: int, bars: int = 4) -> bytes:
    """A single-track MIDI file walking the key's scale in quarter notes."""
    root, minor = _root_note(key)
    scale = MINOR_SCALE if minor else MAJOR_SCALE

    events = bytearray()
    events += _vlq(0) + b"\xff\x51\x03" + (60_000_000 // bpm).to_bytes(3, "big")
    for i in range(bars * 4):
        step = i % (2 * len(scale) - 2)
        degree = step if step < len(scale) else 2 * len(scale) - 2 - step
        note = root + scale[degree]
        events += _vlq(0) + bytes([0x90, note, 96])
        events += _vlq(TICKS_PER_BEAT) + bytes([0x80, note, 0])
    events += _vlq(0) + b"\xff\x2f\x00"

    header = b"MThd" + struct.pack(">IHHH", 6, 0, 1, TICKS_PER_BEAT)
    track = b"MTrk" + struct.pack(">I", len(events)) + bytes(events)
    return header + track


def _cover_svg(title: str) -> str:
    safe = title.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" width="512" height="512">'
        '<rect width="512" height="512" fill="#0b0221"/>'
        '<circle cx="256" cy="256" r="180" fill="none" stroke="#ff2a6d" stroke-width="6"/>'
        f'<text x="256" y="270" font-size="36" text-anchor="middle" fill="#05d9e8">{safe}</text>'
        "</svg>"
    )


class MockModelPlugin(BaseModelPlugin):
    """Implements every capability without calling out to any service."""

    def __init__(self, plugin_id: str = "mock-default") -> None:
        super().__init__()
        self.identity = PluginIdentity(
            id=plugin_id,
            name="Offline Mock",
            version="1.0.0",
            description="Deterministic placeholder content for offline development",
            optional_config={"coverTagline": ""},
        )

    async def generate_lyrics(self, params: LyricsGenerationParams) -> LyricsResult:
        self._ensure_ready()
        theme = params.lyric_theme
        lyrics = (
            "[Verse 1]\n"
            f"Streetlights hum about {theme}\n"
            "I keep the engine running low\n\n"
            "[Chorus]\n"
            f"Oh, {theme}, you never let me go\n"
            "Echoes in the radio\n\n"
            "[Verse 2]\n"
            "Static on the windshield glass\n"
            "Every mile a memory passed\n\n"
            "[Chorus]\n"
            f"Oh, {theme}, you never let me go\n"
            "Echoes in the radio"
        )
        title = f"{theme.split(',')[0].strip().title()} ({params.genre})"
        style_prompt = ", ".join(
            part for part in (params.genre, params.style, params.key, f"{params.bpm}bpm") if part
        )
        log.info("[mock] Generated lyrics for theme '%s'", theme)
        return LyricsResult(title=title, lyrics=lyrics, style_prompt=style_prompt)

    async def generate_midi(self, params: MidiGenerationParams) -> str:
        self._ensure_ready()
        return base64.b64encode(build_scale_midi(params.key, params.bpm)).decode("ascii")

    async def generate_image(self, params: ImageGenerationParams) -> str:
        self._ensure_ready()
        title = params.title
        tagline = self._settings["coverTagline"]
        if tagline:
            title = f"{title} / {tagline}"
        svg = _cover_svg(title).encode("utf-8")
        return f"data:image/svg+xml;base64,{base64.b64encode(svg).decode('ascii')}"

    async def edit_image(
        self, original_params: ImageGenerationParams, edit_prompt: str
    ) -> str:
        self._ensure_ready()
        edited = original_params.model_copy(
            update={"title": f"{original_params.title} ({edit_prompt})"}
        )
        return await self.generate_image(edited)

    async def analyze_lyrics(
        self, lyrics: str, title: str, theme: str
    ) -> LyricAnalysisResult:
        self._ensure_ready()
        sections = [s for s in split_lyric_sections(lyrics) if s.tag]
        target = next((s for s in sections if "chorus" in s.tag.lower()), None)
        if target is None:
            target = sections[0] if sections else None
        revised = "\n".join(line.upper() for line in target.lines) if target else lyrics
        return LyricAnalysisResult(
            theme=theme,
            mood="wistful",
            imagery=f"Night-time driving imagery around '{title}'",
            critique="Solid hook; the verses could use more concrete detail.",
            bias_check=BiasCheck(is_biased=False, reasoning="No stereotypes found."),
            suggestion=LyricSuggestion(
                section=target.tag if target else "[Chorus]", revised_lyrics=revised
            ),
        )

    async def evaluate_song(
        self, lyrics: str, title: str, params: LyricsGenerationParams
    ) -> SongEvaluationMetrics:
        self._ensure_ready()
        line_count = sum(1 for line in lyrics.splitlines() if line.strip())
        structure = min(100, 40 + 5 * line_count)
        return SongEvaluationMetrics(
            overall_score=70,
            lyrical=LyricalMetrics(
                rhyme_consistency=72,
                emotional_coherence=75,
                originality=max(0, min(100, params.creativity)),
                clarity=80,
            ),
            musical=MusicalMetrics(
                melodic_interest=65,
                harmonic_quality=68,
                rhythmic_consistency=74,
                structure_quality=structure,
            ),
            feedback=[f"'{title}' has a clear {params.genre} identity."],
            improvements=["Add a bridge to vary the structure."],
        )
