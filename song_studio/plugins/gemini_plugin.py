"""Gemini backend for every capability, via the OpenAI-compatible endpoint."""

from __future__ import annotations

import base64
import logging
import time
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from song_studio.models.generation import (
    ImageGenerationParams,
    LyricAnalysisResult,
    LyricsGenerationParams,
    LyricsResult,
    MidiGenerationParams,
    SongEvaluationMetrics,
)
from song_studio.models.plugin import PluginIdentity
from song_studio.plugins.base import BaseModelPlugin
from song_studio.plugins.errors import BackendResponseError, PluginConfigError
from song_studio.plugins.parsing import (
    extract_json_object,
    normalize_base64_midi,
    parse_lyrics_response,
)
from song_studio.plugins.prompts import (
    ANALYSIS_PROMPT,
    EVALUATION_PROMPT,
    IMAGE_EDIT_PROMPT,
    IMAGE_PROMPT,
    LYRICS_PROMPT,
    MIDI_PROMPT,
)

log = logging.getLogger(__name__)

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"
DEFAULT_TIMEOUT = 120.0


class GeminiModelPlugin(BaseModelPlugin):
    """Lyrics, MIDI, cover art, analysis and evaluation backed by Google Gemini.

    Talks to Gemini through the ``openai`` SDK, so any OpenAI-compatible
    server can be swapped in with the ``baseUrl`` option.
    """

    def __init__(self, plugin_id: str = "gemini-default") -> None:
        super().__init__()
        self.identity = PluginIdentity(
            id=plugin_id,
            name="Google Gemini",
            version="1.0.0",
            description=(
                "Multi-modal AI plugin using Google Gemini for lyrics, MIDI, "
                "images and analysis"
            ),
            required_config=("API_KEY",),
            optional_config={
                "textModel": DEFAULT_TEXT_MODEL,
                "imageModel": DEFAULT_IMAGE_MODEL,
                "baseUrl": GEMINI_OPENAI_BASE_URL,
                "timeout": DEFAULT_TIMEOUT,
            },
        )
        self._client: AsyncOpenAI | None = None

    async def _connect(self, settings: dict[str, Any]) -> None:
        try:
            timeout = float(settings["timeout"])
        except (TypeError, ValueError):
            raise PluginConfigError(
                f"timeout must be a number of seconds, got {settings['timeout']!r}"
            ) from None
        settings["timeout"] = timeout
        self._client = AsyncOpenAI(
            api_key=settings["API_KEY"],
            base_url=settings["baseUrl"],
            timeout=timeout,
        )

    def _disconnect(self) -> None:
        # Pooled connections are released once the client is garbage collected.
        self._client = None

    # ── Backend calls ──────────────────────────────────

    async def _complete(self, prompt: str, json_mode: bool = False) -> str:
        """Single chat completion; returns the non-empty response text."""
        params: dict[str, Any] = {
            "model": self._settings["textModel"],
            "messages": [{"role": "user", "content": prompt}],
        }
        if json_mode:
            params["response_format"] = {"type": "json_object"}

        start = time.time()
        try:
            response = await self._client.chat.completions.create(**params)
        except openai.OpenAIError as e:
            raise BackendResponseError(f"Text generation request failed: {e}") from e
        log.info(
            "Completion from %s in %.2fs", self._settings["textModel"], time.time() - start
        )

        text = response.choices[0].message.content if response.choices else None
        if not text or not text.strip():
            raise BackendResponseError("Received an empty response from the API.")
        return text

    async def _render_image(self, prompt: str) -> str:
        """Generate one PNG and return it as a data URL."""
        start = time.time()
        try:
            response = await self._client.images.generate(
                model=self._settings["imageModel"],
                prompt=prompt,
                n=1,
                response_format="b64_json",
            )
        except openai.OpenAIError as e:
            raise BackendResponseError(f"Image generation request failed: {e}") from e
        log.info(
            "Image from %s in %.2fs", self._settings["imageModel"], time.time() - start
        )

        if not response.data:
            raise BackendResponseError(
                "API did not return any images. This might be due to a safety "
                "policy violation. Try a different theme."
            )
        image = response.data[0]
        if image.b64_json:
            return f"data:image/png;base64,{image.b64_json}"
        if image.url:
            return await self._download_image(image.url)
        raise BackendResponseError("Image response contained neither data nor a URL.")

    async def _download_image(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(timeout=self._settings["timeout"]) as client:
                resp = await client.get(url)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            raise BackendResponseError(f"Could not download generated image: {e}") from e
        mime = resp.headers.get("content-type", "image/png").split(";")[0]
        encoded = base64.b64encode(resp.content).decode("ascii")
        return f"data:{mime};base64,{encoded}"

    # ── Capabilities ───────────────────────────────────

    async def generate_lyrics(self, params: LyricsGenerationParams) -> LyricsResult:
        self._ensure_ready()
        text = await self._complete(LYRICS_PROMPT.format(**params.model_dump()))
        result = parse_lyrics_response(text)
        log.info("Generated lyrics '%s' (%d chars)", result.title, len(result.lyrics))
        return result

    async def generate_midi(self, params: MidiGenerationParams) -> str:
        self._ensure_ready()
        text = await self._complete(MIDI_PROMPT.format(**params.model_dump()))
        return normalize_base64_midi(text)

    async def generate_image(self, params: ImageGenerationParams) -> str:
        self._ensure_ready()
        return await self._render_image(IMAGE_PROMPT.format(**params.model_dump()))

    async def edit_image(
        self, original_params: ImageGenerationParams, edit_prompt: str
    ) -> str:
        self._ensure_ready()
        prompt = IMAGE_EDIT_PROMPT.format(
            edit_prompt=edit_prompt, **original_params.model_dump()
        )
        return await self._render_image(prompt)

    async def analyze_lyrics(
        self, lyrics: str, title: str, theme: str
    ) -> LyricAnalysisResult:
        self._ensure_ready()
        text = await self._complete(
            ANALYSIS_PROMPT.format(lyrics=lyrics, title=title, theme=theme),
            json_mode=True,
        )
        try:
            return LyricAnalysisResult.model_validate(extract_json_object(text))
        except ValidationError as e:
            log.error("Unparseable analysis response: %s", text[:500])
            raise BackendResponseError(f"Analysis response has the wrong shape: {e}") from e

    async def evaluate_song(
        self, lyrics: str, title: str, params: LyricsGenerationParams
    ) -> SongEvaluationMetrics:
        self._ensure_ready()
        prompt = EVALUATION_PROMPT.format(
            title=title,
            lyrics=lyrics,
            genre=params.genre,
            style=params.style,
            lyric_theme=params.lyric_theme,
        )
        text = await self._complete(prompt, json_mode=True)
        try:
            return SongEvaluationMetrics.model_validate(extract_json_object(text))
        except ValidationError as e:
            log.error("Unparseable evaluation response: %s", text[:500])
            raise BackendResponseError(
                f"Evaluation response has the wrong shape: {e}"
            ) from e
