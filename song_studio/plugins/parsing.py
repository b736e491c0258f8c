"""Turn raw backend text into result objects."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import Any

from song_studio.models.generation import LyricsResult
from song_studio.plugins.errors import BackendResponseError

log = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Pop Song"
DEFAULT_STYLE_PROMPT = "Pop, Melodic, 120bpm"
DEFAULT_LYRICS = "Lyrics not generated."

MIDI_HEADER = b"MThd"

_TITLE_RE = re.compile(r"^Title:\s*(.*)$", re.IGNORECASE | re.MULTILINE)
_STYLE_PROMPT_RE = re.compile(
    r"^(?:Style Prompt|Suno Prompt|Musical Blueprint):\s*(.*?)(?=\n\s*\[|\n\s*Title:|\Z)",
    re.IGNORECASE | re.MULTILINE | re.DOTALL,
)
_LYRICS_START_RE = re.compile(r"^\s*\[", re.MULTILINE)
# Language tag: a short word alone on the opening fence line.
_CODE_FENCE_RE = re.compile(r"```(?:[A-Za-z][\w-]{0,19}(?=[ \t]*\r?\n))?")
_NON_BASE64_RE = re.compile(r"[^A-Za-z0-9+/=]")


def parse_lyrics_response(text: str) -> LyricsResult:
    """Extract title, style prompt and lyrics from a sectioned response.

    Each missing section gets a default. If nothing matches at all, the
    whole response becomes the lyrics.
    """
    text = text.strip()

    title_match = _TITLE_RE.search(text)
    prompt_match = _STYLE_PROMPT_RE.search(text)
    title = title_match.group(1).strip() if title_match else DEFAULT_TITLE
    style_prompt = (
        " ".join(prompt_match.group(1).split()) if prompt_match else DEFAULT_STYLE_PROMPT
    )

    lyrics_start = _LYRICS_START_RE.search(text)
    lyrics = text[lyrics_start.start():].strip() if lyrics_start else DEFAULT_LYRICS

    if not title_match and not prompt_match and not lyrics_start:
        log.warning("Lyrics response had no recognizable sections, using raw text")
        lyrics = text
    elif not (title_match and prompt_match and lyrics_start):
        log.warning(
            "Lyrics response missing sections: title=%s prompt=%s lyrics=%s",
            bool(title_match),
            bool(prompt_match),
            bool(lyrics_start),
        )

    return LyricsResult(title=title, lyrics=lyrics, style_prompt=style_prompt)


def normalize_base64_midi(text: str) -> str:
    """Clean a text-delivered MIDI payload into valid, decodable base64.

    Code fences and every non-base64 character are dropped and the result is
    padded to a multiple of four.

    Raises:
        BackendResponseError: if nothing usable remains or it does not decode.
    """
    payload = _NON_BASE64_RE.sub("", _CODE_FENCE_RE.sub("", text or ""))
    if not payload.strip("="):
        raise BackendResponseError(
            "MIDI generation failed: output contained no valid base64 data."
        )

    payload += "=" * ((4 - len(payload) % 4) % 4)

    try:
        decoded = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise BackendResponseError(
            f"Backend returned invalid base64 data for the MIDI file: {e}"
        ) from e

    if not decoded.startswith(MIDI_HEADER):
        log.warning("Decoded MIDI payload (%d bytes) lacks an MThd header", len(decoded))
    return payload


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the outermost JSON object in ``text``, ignoring surrounding prose."""
    json_start = text.find("{")
    json_end = text.rfind("}") + 1
    if json_start < 0 or json_end <= json_start:
        raise BackendResponseError("No JSON found in response")
    try:
        data = json.loads(text[json_start:json_end])
    except json.JSONDecodeError as e:
        raise BackendResponseError(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise BackendResponseError("Expected a JSON object in response")
    return data
