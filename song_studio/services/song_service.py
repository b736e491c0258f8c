"""Assemble songs by calling the registry's active plugins."""

from __future__ import annotations

import asyncio
import logging
import time

from song_studio.models.generation import (
    ImageGenerationParams,
    LyricAnalysisResult,
    LyricsGenerationParams,
    MidiGenerationParams,
    SongEvaluationMetrics,
)
from song_studio.models.plugin import PluginType
from song_studio.models.song import SongArtifact, apply_suggestion
from song_studio.plugins.errors import NoActivePluginError
from song_studio.services.registry import ModelRegistry

log = logging.getLogger(__name__)


class SongGenerator:
    """Runs the lyrics → (MIDI ‖ cover art) pipeline and the follow-up edits.

    Lyrics come first because the MIDI and image requests use the
    generated title and style prompt. MIDI and image then run
    concurrently and fail independently.
    """

    def __init__(self, registry: ModelRegistry) -> None:
        self.registry = registry

    def _require(self, plugin_type: PluginType):
        plugin = self.registry.get_active_plugin(plugin_type)
        if plugin is None:
            raise NoActivePluginError(f"No active {plugin_type.value} plugin")
        return plugin

    async def generate_song(self, params: LyricsGenerationParams) -> SongArtifact:
        """Generate lyrics, then MIDI and cover art.

        Raises:
            PluginError: if lyrics cannot be generated. MIDI and image
                failures are recorded on the returned song instead.
        """
        start = time.time()
        lyrics_plugin = self._require(PluginType.LYRICS)
        result = await lyrics_plugin.generate_lyrics(params)

        song = SongArtifact(
            params=params,
            title=result.title,
            lyrics=result.lyrics,
            style_prompt=result.style_prompt,
        )
        song.mark("lyrics")
        log.info("Lyrics ready for '%s' in %.2fs", song.title, time.time() - start)

        await asyncio.gather(self.regenerate_midi(song), self.regenerate_cover_art(song))

        log.info(
            "Song '%s' generated in %.2fs (errors: %s)",
            song.title,
            time.time() - start,
            song.errors or "none",
        )
        return song

    async def regenerate_midi(self, song: SongArtifact) -> None:
        """(Re)generate the MIDI facet; a failure is recorded, not raised."""
        params = MidiGenerationParams(
            genre=song.params.genre,
            style=song.params.style,
            key=song.params.key,
            bpm=song.params.bpm,
            style_prompt=song.style_prompt,
        )
        try:
            song.midi = await self._require(PluginType.MIDI).generate_midi(params)
        except Exception as e:
            log.error("MIDI generation failed: %s", e)
            song.mark("midi", e)
        else:
            song.mark("midi")

    async def regenerate_cover_art(self, song: SongArtifact) -> None:
        """(Re)generate the cover art facet; a failure is recorded, not raised."""
        try:
            song.cover_art = await self._require(PluginType.IMAGE).generate_image(
                self.image_params(song)
            )
        except Exception as e:
            log.error("Image generation failed: %s", e)
            song.mark("image", e)
        else:
            song.mark("image")

    @staticmethod
    def image_params(song: SongArtifact) -> ImageGenerationParams:
        return ImageGenerationParams(
            title=song.title,
            lyric_theme=song.params.lyric_theme,
            lyrics=song.lyrics,
            style_prompt=song.style_prompt,
        )

    async def edit_cover_art(self, song: SongArtifact, edit_prompt: str) -> str:
        edit_prompt = edit_prompt.strip()
        if not edit_prompt:
            raise ValueError("Please enter an editing instruction.")
        image = await self._require(PluginType.IMAGE).edit_image(
            self.image_params(song), edit_prompt
        )
        song.cover_art = image
        song.mark("image")
        return image

    async def analyze(self, song: SongArtifact) -> LyricAnalysisResult:
        song.analysis = None
        try:
            analysis = await self._require(PluginType.ANALYSIS).analyze_lyrics(
                song.lyrics, song.title, song.params.lyric_theme
            )
        except Exception as e:
            song.mark("analysis", e)
            raise
        song.analysis = analysis
        song.mark("analysis")
        return analysis

    def apply_suggestion(self, song: SongArtifact) -> str:
        """Swap the analyzed section for its suggested revision.

        Raises:
            ValueError: if the song has no analysis.
            SectionNotFoundError: if the suggested section is not in the lyrics.
        """
        if song.analysis is None:
            raise ValueError("Song has no analysis to apply")
        song.lyrics = apply_suggestion(song.lyrics, song.analysis.suggestion)
        song.analysis = None
        return song.lyrics

    async def evaluate(self, song: SongArtifact) -> SongEvaluationMetrics:
        try:
            metrics = await self._require(PluginType.EVALUATION).evaluate_song(
                song.lyrics, song.title, song.params
            )
        except Exception as e:
            song.mark("evaluation", e)
            raise
        song.evaluation = metrics
        song.mark("evaluation")
        return metrics
