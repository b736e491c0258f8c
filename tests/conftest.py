import pytest

from song_studio.models.generation import (
    BiasCheck,
    LyricAnalysisResult,
    LyricsGenerationParams,
    LyricsResult,
    LyricSuggestion,
)
from song_studio.models.plugin import PluginIdentity
from song_studio.plugins.base import BaseModelPlugin
from song_studio.services.registry import ModelRegistry


class FakePlugin(BaseModelPlugin):
    """In-process plugin implementing every capability, counting disposals."""

    def __init__(self, plugin_id: str, required=("API_KEY",), optional=None):
        super().__init__()
        self.identity = PluginIdentity(
            id=plugin_id,
            name=f"Fake {plugin_id}",
            version="0.0.1",
            required_config=tuple(required),
            optional_config=optional or {"textModel": "fake-text"},
        )
        self.dispose_calls = 0
        self.connect_calls = 0
        self.midi_error: Exception | None = None
        self.image_error: Exception | None = None

    async def _connect(self, settings):
        self.connect_calls += 1

    def dispose(self):
        self.dispose_calls += 1
        super().dispose()

    async def generate_lyrics(self, params):
        self._ensure_ready()
        return LyricsResult(
            title=f"Song about {params.lyric_theme}",
            lyrics="[Verse 1]\nline one\nline two\n\n[Chorus]\nhook line",
            style_prompt=f"{params.genre}, {params.bpm}bpm",
        )

    async def generate_midi(self, params):
        self._ensure_ready()
        if self.midi_error:
            raise self.midi_error
        return "TVRoZAAAAAYAAAABAeA="

    async def generate_image(self, params):
        self._ensure_ready()
        if self.image_error:
            raise self.image_error
        return "data:image/png;base64,iVBORw0KGgo="

    async def edit_image(self, original_params, edit_prompt):
        self._ensure_ready()
        return "data:image/png;base64,RURJVEVE"

    async def analyze_lyrics(self, lyrics, title, theme):
        self._ensure_ready()
        return LyricAnalysisResult(
            theme=theme,
            mood="moody",
            imagery="neon",
            critique="fine",
            bias_check=BiasCheck(is_biased=False, reasoning="none"),
            suggestion=LyricSuggestion(section="[Chorus]", revised_lyrics="better hook"),
        )

    async def evaluate_song(self, lyrics, title, params):
        raise NotImplementedError


class LyricsOnlyPlugin(BaseModelPlugin):
    def __init__(self, plugin_id: str):
        super().__init__()
        self.identity = PluginIdentity(id=plugin_id, name=plugin_id, version="1")

    async def generate_lyrics(self, params):
        self._ensure_ready()
        return LyricsResult(title="t", lyrics="l", style_prompt="s")


@pytest.fixture
def registry():
    return ModelRegistry()


@pytest.fixture
def params():
    return LyricsGenerationParams(
        genre="Dark Synth-pop",
        style="The Weeknd",
        structure="ABABCB",
        key="C-Minor",
        bpm=115,
        lyric_theme="post-breakup anger",
        language="English",
        lyric_sentiment="high-anger (80%), low-sadness (20%), low-joy (0%)",
        creativity=75,
    )
