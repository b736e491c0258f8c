"""The assembled song and the edits a user can apply to it."""

from __future__ import annotations

import base64
import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from song_studio.models.generation import (
    CamelModel,
    LyricAnalysisResult,
    LyricsGenerationParams,
    LyricSuggestion,
    SongEvaluationMetrics,
)

FACETS = ("lyrics", "midi", "image", "analysis", "evaluation")

_HEADER = re.compile(r"\[.*?\]")


class SectionNotFoundError(ValueError):
    """The lyric section named by a suggestion does not exist."""


class FacetStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class FacetState(BaseModel):
    status: FacetStatus = FacetStatus.PENDING
    error: str | None = None


class LyricSection(BaseModel):
    tag: str = Field(description="Section header such as '[Chorus]', empty for untagged text")
    lines: list[str]


class SongArtifact(CamelModel):
    """A generated song. Facets fill in independently as their calls resolve."""

    params: LyricsGenerationParams
    title: str
    lyrics: str
    style_prompt: str
    midi: str | None = Field(default=None, description="Base64-encoded MIDI file")
    cover_art: str | None = Field(default=None, description="Image data URL")
    analysis: LyricAnalysisResult | None = None
    evaluation: SongEvaluationMetrics | None = None
    facets: dict[str, FacetState] = Field(
        default_factory=lambda: {name: FacetState() for name in FACETS}
    )
    created_at: datetime = Field(default_factory=datetime.now)

    def mark(self, facet: str, error: Exception | str | None = None) -> None:
        if error is None:
            self.facets[facet] = FacetState(status=FacetStatus.COMPLETED)
        else:
            self.facets[facet] = FacetState(status=FacetStatus.FAILED, error=str(error))

    @property
    def errors(self) -> dict[str, str]:
        return {
            name: state.error
            for name, state in self.facets.items()
            if state.status == FacetStatus.FAILED and state.error
        }

    @property
    def is_complete(self) -> bool:
        """Title, lyrics, MIDI and cover art are all present."""
        return bool(self.title and self.lyrics and self.midi and self.cover_art)

    def lyric_sections(self) -> list[LyricSection]:
        return split_lyric_sections(self.lyrics)

    def midi_bytes(self) -> bytes:
        if not self.midi:
            raise ValueError("Song has no MIDI data")
        return base64.b64decode(self.midi)

    def cover_art_bytes(self) -> tuple[bytes, str]:
        """Decode the cover art data URL into (bytes, mime type)."""
        if not self.cover_art:
            raise ValueError("Song has no cover art")
        return decode_data_url(self.cover_art)

    def filename_stem(self, fallback: str = "song_output") -> str:
        return sanitize_filename(self.title or fallback)


def sanitize_filename(name: str) -> str:
    name = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    name = re.sub(r"\s+", "_", name)
    return name[:50]


def decode_data_url(data_url: str) -> tuple[bytes, str]:
    match = re.match(r"^data:([\w.+/-]+);base64,(.*)$", data_url, re.DOTALL)
    if not match:
        raise ValueError("Not a base64 data URL")
    return base64.b64decode(match.group(2)), match.group(1)


def split_lyric_sections(lyrics: str) -> list[LyricSection]:
    """Split lyrics on bracketed headers into tagged groups of non-empty lines."""
    sections: list[LyricSection] = []
    tag = ""
    for part in re.split(r"(\[.*?\])", lyrics):
        if _HEADER.fullmatch(part):
            if tag:
                sections.append(LyricSection(tag=tag, lines=[]))
            tag = part
            continue
        lines = [line.strip() for line in part.split("\n") if line.strip()]
        if tag or lines:
            sections.append(LyricSection(tag=tag, lines=lines))
        tag = ""
    if tag:
        sections.append(LyricSection(tag=tag, lines=[]))
    return sections


def _replace_section(lyrics: str, header_pattern: str, revised: str) -> str | None:
    pattern = re.compile(
        rf"({header_pattern}\s*\n)([\s\S]*?)(?=\n\s*\[|\Z)", re.IGNORECASE
    )
    if not pattern.search(lyrics):
        return None
    return pattern.sub(lambda m: f"{m.group(1)}{revised}\n\n", lyrics, count=1).strip()


def apply_suggestion(lyrics: str, suggestion: LyricSuggestion) -> str:
    """Replace the body of the suggested section with the revised lyrics.

    The header is matched case-insensitively with brackets added if the
    suggestion omitted them; failing that, a loose match tolerates brackets
    missing on either side.

    Raises:
        SectionNotFoundError: if no section matches.
    """
    target = suggestion.section.strip()
    if not target.startswith("["):
        target = "[" + target
    if not target.endswith("]"):
        target = target + "]"

    updated = _replace_section(lyrics, re.escape(target), suggestion.revised_lyrics)
    if updated is None:
        bare = re.sub(r"[\[\]]", "", suggestion.section).strip()
        updated = _replace_section(
            lyrics, rf"\[?{re.escape(bare)}\]?", suggestion.revised_lyrics
        )
    if updated is None:
        raise SectionNotFoundError(
            f'Could not find section "{suggestion.section}" to apply suggestion.'
        )
    return updated
