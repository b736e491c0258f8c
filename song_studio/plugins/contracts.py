"""Capability contracts a model plugin implements to be registered for a type."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from song_studio.models.generation import (
    ImageGenerationParams,
    LyricAnalysisResult,
    LyricsGenerationParams,
    LyricsResult,
    MidiGenerationParams,
    SongEvaluationMetrics,
)
from song_studio.models.plugin import PluginIdentity, PluginType


@runtime_checkable
class ModelPlugin(Protocol):
    """Lifecycle shared by every model backend.

    ``initialize`` must fail if a required key is missing, ``is_ready`` is
    true only between a successful ``initialize`` and ``dispose``, and
    ``dispose`` is idempotent.
    """

    identity: PluginIdentity

    async def initialize(self, config: Mapping[str, Any]) -> None: ...

    def is_ready(self) -> bool: ...

    def dispose(self) -> None: ...


@runtime_checkable
class LyricsModelPlugin(ModelPlugin, Protocol):
    async def generate_lyrics(self, params: LyricsGenerationParams) -> LyricsResult: ...


@runtime_checkable
class MidiModelPlugin(ModelPlugin, Protocol):
    async def generate_midi(self, params: MidiGenerationParams) -> str:
        """Return a base64-encoded MIDI file."""
        ...


@runtime_checkable
class ImageModelPlugin(ModelPlugin, Protocol):
    async def generate_image(self, params: ImageGenerationParams) -> str:
        """Return cover art as a base64 image data URL."""
        ...

    async def edit_image(
        self, original_params: ImageGenerationParams, edit_prompt: str
    ) -> str: ...


@runtime_checkable
class AnalysisModelPlugin(ModelPlugin, Protocol):
    async def analyze_lyrics(
        self, lyrics: str, title: str, theme: str
    ) -> LyricAnalysisResult: ...


@runtime_checkable
class EvaluationModelPlugin(ModelPlugin, Protocol):
    async def evaluate_song(
        self, lyrics: str, title: str, params: LyricsGenerationParams
    ) -> SongEvaluationMetrics: ...


CONTRACTS: dict[PluginType, type] = {
    PluginType.LYRICS: LyricsModelPlugin,
    PluginType.MIDI: MidiModelPlugin,
    PluginType.IMAGE: ImageModelPlugin,
    PluginType.ANALYSIS: AnalysisModelPlugin,
    PluginType.EVALUATION: EvaluationModelPlugin,
}


def supports(plugin: object, plugin_type: PluginType) -> bool:
    """Whether ``plugin`` implements the contract for ``plugin_type``."""
    return isinstance(plugin, CONTRACTS[plugin_type])
