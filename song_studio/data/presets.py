"""Built-in song presets."""

from __future__ import annotations

from pydantic import BaseModel, Field

from song_studio.models.generation import LyricsGenerationParams, SentimentMix


class SongPreset(BaseModel):
    id: str
    name: str
    genre: str
    style: str
    language: str = "English"
    structure: str
    key: str
    bpm: int
    lyric_theme: str
    sentiment: SentimentMix
    creativity: int = Field(ge=0, le=100)

    def to_params(self, **overrides) -> LyricsGenerationParams:
        """Build generation parameters, letting ``overrides`` replace any field."""
        values = {
            "genre": self.genre,
            "style": self.style,
            "language": self.language,
            "structure": self.structure,
            "key": self.key,
            "bpm": self.bpm,
            "lyric_theme": self.lyric_theme,
            "lyric_sentiment": self.sentiment.describe(),
            "creativity": self.creativity,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return LyricsGenerationParams(**values)


SONG_PRESETS: list[SongPreset] = [
    SongPreset(
        id="midnight-drive-synthwave",
        name="Midnight Drive Synthwave",
        genre="80s Synthwave",
        style="Kavinsky, The Midnight, Chromatics",
        structure="ABABCB",
        key="A-Minor",
        bpm=125,
        lyric_theme="nostalgic memories of a lost love on a rainy city night",
        sentiment=SentimentMix(anger=10, sadness=60, joy=30),
        creativity=60,
    ),
    SongPreset(
        id="indie-dreamscape",
        name="Indie Dreamscape",
        genre="Dream Pop",
        style="Beach House, Alvvays, Cocteau Twins",
        structure="Verse-Chorus",
        key="F-Major",
        bpm=95,
        lyric_theme="the hazy feeling of a summer afternoon daydream",
        sentiment=SentimentMix(anger=0, sadness=25, joy=75),
        creativity=80,
    ),
    SongPreset(
        id="hyperpop-glitch",
        name="Hyperpop Glitch",
        genre="Hyperpop",
        style="100 gecs, Charli XCX, AG Cook",
        structure="Verse-Chorus-Bridge",
        key="C#-Major",
        bpm=160,
        lyric_theme="sensory overload in the digital age, online identity crisis",
        sentiment=SentimentMix(anger=40, sadness=10, joy=50),
        creativity=100,
    ),
    SongPreset(
        id="city-nights-rb",
        name="City Nights R&B",
        genre="R&B Pop",
        style="The Weeknd, SZA, Frank Ocean",
        structure="ABABCB",
        key="G-Minor",
        bpm=100,
        lyric_theme="late-night confessions and temptations in a neon-lit metropolis",
        sentiment=SentimentMix(anger=20, sadness=50, joy=30),
        creativity=70,
    ),
]


def get_preset(preset_id: str) -> SongPreset | None:
    return next((p for p in SONG_PRESETS if p.id == preset_id), None)
