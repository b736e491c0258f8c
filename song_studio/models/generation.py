"""Request parameters and results exchanged with model plugins."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def sentiment_level(value: int) -> str:
    if value >= 70:
        return "high"
    if value >= 30:
        return "medium"
    return "low"


class SentimentMix(BaseModel):
    """Relative weight of each emotion in the lyrics, 0-100."""

    anger: int = Field(default=0, ge=0, le=100)
    sadness: int = Field(default=0, ge=0, le=100)
    joy: int = Field(default=0, ge=0, le=100)

    def describe(self) -> str:
        """Render as e.g. ``high-anger (80%), low-sadness (20%), low-joy (0%)``."""
        parts = [
            f"{sentiment_level(value)}-{name} ({value}%)"
            for name, value in (
                ("anger", self.anger),
                ("sadness", self.sadness),
                ("joy", self.joy),
            )
        ]
        return ", ".join(parts)


class LyricsGenerationParams(CamelModel):
    """What to write: used for lyrics generation and evaluation."""

    model_config = ConfigDict(frozen=True)

    genre: str
    style: str = ""
    structure: str = "Verse-Chorus"
    key: str = "C-Major"
    bpm: int = Field(default=120, ge=20, le=300)
    lyric_theme: str
    language: str = "English"
    lyric_sentiment: str = Field(
        default="", description="Descriptor produced by SentimentMix.describe()"
    )
    creativity: int = Field(default=50, ge=0, le=100)


class LyricsResult(CamelModel):
    title: str
    lyrics: str
    style_prompt: str = Field(
        description="Comma-separated style tags, e.g. 'Dark Synth-pop, Male Vocals, 115bpm'"
    )


class MidiGenerationParams(CamelModel):
    model_config = ConfigDict(frozen=True)

    genre: str
    style: str = ""
    key: str = "C-Major"
    bpm: int = Field(default=120, ge=20, le=300)
    style_prompt: str | None = None


class ImageGenerationParams(CamelModel):
    model_config = ConfigDict(frozen=True)

    title: str
    lyric_theme: str
    lyrics: str
    style_prompt: str | None = None


class BiasCheck(BaseModel):
    is_biased: bool
    reasoning: str


class LyricSuggestion(BaseModel):
    section: str = Field(description="Section header the revision replaces, e.g. '[Chorus]'")
    revised_lyrics: str


class LyricAnalysisResult(BaseModel):
    """Critique of a lyric sheet with one suggested section rewrite."""

    theme: str
    mood: str
    imagery: str
    critique: str
    bias_check: BiasCheck
    suggestion: LyricSuggestion


class LyricalMetrics(CamelModel):
    rhyme_consistency: float = Field(ge=0, le=100)
    emotional_coherence: float = Field(ge=0, le=100)
    originality: float = Field(ge=0, le=100)
    clarity: float = Field(ge=0, le=100)


class MusicalMetrics(CamelModel):
    melodic_interest: float = Field(ge=0, le=100)
    harmonic_quality: float = Field(ge=0, le=100)
    rhythmic_consistency: float = Field(ge=0, le=100)
    structure_quality: float = Field(ge=0, le=100)


class SongEvaluationMetrics(CamelModel):
    """Quality scores (0-100) with feedback and suggested improvements."""

    overall_score: float = Field(ge=0, le=100)
    lyrical: LyricalMetrics
    musical: MusicalMetrics
    feedback: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)

    def lyrical_average(self) -> int:
        m = self.lyrical
        return round(
            (m.rhyme_consistency + m.emotional_coherence + m.originality + m.clarity) / 4
        )

    def musical_average(self) -> int:
        m = self.musical
        return round(
            (
                m.melodic_interest
                + m.harmonic_quality
                + m.rhythmic_consistency
                + m.structure_quality
            )
            / 4
        )


def score_band(score: float) -> str:
    """Bucket a 0-100 score for display."""
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"
