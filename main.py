"""CLI entry point: generate a song with the configured model plugins."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import mimetypes
import sys
import time
from datetime import datetime
from pathlib import Path

from song_studio.data.presets import SONG_PRESETS, get_preset
from song_studio.models.generation import (
    LyricsGenerationParams,
    SentimentMix,
    score_band,
)
from song_studio.models.song import SectionNotFoundError, SongArtifact
from song_studio.plugins.errors import PluginError
from song_studio.services.bootstrap import (
    BACKENDS,
    create_default_registry,
    default_backend,
    initialize_registry,
)
from song_studio.services.song_service import SongGenerator

log = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate a song (title, lyrics, style prompt, MIDI and cover art)."
    )
    parser.add_argument(
        "--preset", "-p",
        type=str,
        default=None,
        help="Start from a built-in preset (see --list-presets).",
    )
    parser.add_argument("--list-presets", action="store_true", help="List presets and exit.")
    parser.add_argument("--genre", type=str, default=None)
    parser.add_argument("--style", type=str, default=None, help="Style influences, e.g. artists.")
    parser.add_argument("--structure", type=str, default=None, help="e.g. ABABCB, Verse-Chorus.")
    parser.add_argument("--key", type=str, default=None, help="e.g. C-Minor.")
    parser.add_argument("--bpm", type=int, default=None)
    parser.add_argument("--theme", "-t", type=str, default=None, help="Lyrical theme.")
    parser.add_argument("--language", type=str, default=None)
    parser.add_argument("--anger", type=int, default=None, help="Anger sentiment 0-100.")
    parser.add_argument("--sadness", type=int, default=None, help="Sadness sentiment 0-100.")
    parser.add_argument("--joy", type=int, default=None, help="Joy sentiment 0-100.")
    parser.add_argument("--creativity", type=int, default=None, help="0 formulaic - 100 experimental.")
    parser.add_argument(
        "--analyze",
        action="store_true",
        help="Critique the lyrics after generation.",
    )
    parser.add_argument(
        "--apply-suggestion",
        action="store_true",
        help="Apply the analysis suggestion to the lyrics (implies --analyze).",
    )
    parser.add_argument(
        "--evaluate",
        action="store_true",
        help="Score the finished song.",
    )
    parser.add_argument(
        "--backend",
        choices=sorted(BACKENDS),
        default=None,
        help="Model backend (default: $SONG_STUDIO_BACKEND or gemini).",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging.",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Output directory (default: outputs/YYYY-MM-DD/HH-MM-SS).",
    )
    return parser.parse_args(argv)


def build_params(args: argparse.Namespace) -> LyricsGenerationParams:
    """Combine an optional preset with explicit command-line overrides."""
    overrides = {
        "genre": args.genre,
        "style": args.style,
        "structure": args.structure,
        "key": args.key,
        "bpm": args.bpm,
        "lyric_theme": args.theme,
        "language": args.language,
        "creativity": args.creativity,
    }

    if args.preset:
        preset = get_preset(args.preset)
        if preset is None:
            raise ValueError(f"Unknown preset: {args.preset}")
        sentiment = preset.sentiment.model_copy(
            update={
                k: v
                for k, v in (("anger", args.anger), ("sadness", args.sadness), ("joy", args.joy))
                if v is not None
            }
        )
        return preset.to_params(lyric_sentiment=sentiment.describe(), **overrides)

    if not args.genre or not args.theme:
        raise ValueError("Provide --preset or both --genre and --theme")
    sentiment = SentimentMix(anger=args.anger or 0, sadness=args.sadness or 0, joy=args.joy or 0)
    values = {k: v for k, v in overrides.items() if v is not None}
    return LyricsGenerationParams(lyric_sentiment=sentiment.describe(), **values)


def setup_output_dir(custom_dir: str | None = None) -> Path:
    """Create output directory with timestamp."""
    if custom_dir:
        output_dir = Path(custom_dir)
    else:
        now = datetime.now()
        output_dir = Path("outputs") / now.strftime("%Y-%m-%d") / now.strftime("%H-%M-%S")

    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def setup_logging(output_dir: Path, verbose: bool = False) -> None:
    """Setup logging to both console and file."""
    log_level = logging.DEBUG if verbose else logging.INFO
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(output_dir / "execution.log")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)


def write_song(song: SongArtifact, output_dir: Path) -> list[Path]:
    """Write the song JSON plus decoded MIDI and cover art files."""
    written = []
    song_file = output_dir / "song.json"
    song_file.write_text(song.model_dump_json(by_alias=True, indent=2))
    written.append(song_file)

    stem = song.filename_stem()
    if song.midi:
        midi_file = output_dir / f"{stem}.mid"
        midi_file.write_bytes(song.midi_bytes())
        written.append(midi_file)
    if song.cover_art:
        data, mime = song.cover_art_bytes()
        ext = mimetypes.guess_extension(mime) or ".png"
        cover_file = output_dir / f"{stem or 'cover_art'}{ext}"
        cover_file.write_bytes(data)
        written.append(cover_file)
    return written


async def run_follow_ups(
    generator: SongGenerator, song: SongArtifact, args: argparse.Namespace
) -> None:
    """Analyze, apply and evaluate as requested.

    A failure here is recorded on the song's facets and logged; the song
    generated so far is still written out.
    """
    if args.analyze or args.apply_suggestion:
        try:
            analysis = await generator.analyze(song)
        except PluginError as e:
            log.error(f"Lyric analysis failed: {e}")
        else:
            log.info(f"Critique: {analysis.critique}")
            if args.apply_suggestion:
                try:
                    generator.apply_suggestion(song)
                    log.info(f"Applied suggestion to {analysis.suggestion.section}")
                except SectionNotFoundError as e:
                    log.warning(str(e))

    if args.evaluate:
        try:
            metrics = await generator.evaluate(song)
        except PluginError as e:
            log.error(f"Song evaluation failed: {e}")
            return
        log.info(
            f"Overall score: {metrics.overall_score:.0f} ({score_band(metrics.overall_score)}), "
            f"lyrical avg {metrics.lyrical_average()}, musical avg {metrics.musical_average()}"
        )


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if args.list_presets:
        for preset in SONG_PRESETS:
            print(f"{preset.id:28} {preset.name} ({preset.genre}, {preset.bpm} bpm)")
        return 0

    try:
        params = build_params(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    output_dir = setup_output_dir(args.output_dir)
    setup_logging(output_dir, args.verbose)

    backend = args.backend or default_backend()
    start_time = time.time()
    start_datetime = datetime.now().isoformat()

    log.info("=" * 80)
    log.info("Starting song generation")
    log.info(f"  - Timestamp: {start_datetime}")
    log.info(f"  - Backend: {backend}")
    log.info(f"  - Genre: {params.genre} / Key: {params.key} / BPM: {params.bpm}")
    log.info(f"  - Theme: {params.lyric_theme}")
    log.info(f"  - Sentiment: {params.lyric_sentiment}")
    log.info(f"  - Output directory: {output_dir}")
    log.info("=" * 80)

    registry = create_default_registry(backend)
    try:
        await initialize_registry(registry)
        generator = SongGenerator(registry)
        song = await generator.generate_song(params)
        await run_follow_ups(generator, song, args)
    except PluginError as e:
        log.error(f"Song generation failed: {e}")
        return 1
    finally:
        registry.dispose()

    elapsed_time = time.time() - start_time
    for path in write_song(song, output_dir):
        log.info(f"Saved {path}")

    params_file = output_dir / "params.json"
    params_file.write_text(
        json.dumps(
            {
                "timestamp": start_datetime,
                "backend": backend,
                "params": params.model_dump(by_alias=True),
                "runtime_seconds": elapsed_time,
            },
            indent=2,
        )
    )

    for facet, error in song.errors.items():
        log.warning(f"{facet} failed: {error}")
    log.info(f"Execution completed in {elapsed_time:.2f}s")

    print(song.model_dump_json(by_alias=True, indent=2, exclude={"midi", "cover_art"}))
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
