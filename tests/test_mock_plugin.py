import struct

import pytest

from song_studio.models.generation import ImageGenerationParams
from song_studio.models.song import decode_data_url
from song_studio.plugins.mock_plugin import MockModelPlugin, _root_note, _vlq, build_scale_midi


@pytest.mark.parametrize(
    "key,expected",
    [("C-Major", (60, False)), ("A-Minor", (69, True)), ("F#-Minor", (66, True)), ("Bb-Major", (70, False))],
)
def test_root_note(key, expected):
    assert _root_note(key) == expected


def test_vlq():
    assert _vlq(0) == b"\x00"
    assert _vlq(480) == b"\x83\x60"


def test_scale_midi_structure():
    data = build_scale_midi("C-Major", 120, bars=2)
    assert data[:4] == b"MThd"
    length, fmt, tracks, division = struct.unpack(">IHHH", data[4:14])
    assert (length, fmt, tracks, division) == (6, 0, 1, 480)
    assert data[14:18] == b"MTrk"
    (track_len,) = struct.unpack(">I", data[18:22])
    assert len(data) == 22 + track_len
    assert data.endswith(b"\xff\x2f\x00")


@pytest.mark.asyncio
async def test_cover_tagline_is_rendered():
    plugin = MockModelPlugin()
    await plugin.initialize({"coverTagline": "Vol. 2"})
    url = await plugin.generate_image(
        ImageGenerationParams(title="Night <Drive>", lyric_theme="roads", lyrics="")
    )
    svg, mime = decode_data_url(url)
    assert mime == "image/svg+xml"
    assert b"Night &lt;Drive&gt; / Vol. 2" in svg
