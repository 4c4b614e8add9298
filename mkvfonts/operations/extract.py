"""
Container extraction.

Dumps subtitle tracks and attachments of a container into a directory,
naming subtitle files so their track metadata survives.
"""

from pathlib import Path

from mkvfonts.config.paths import ASS_EXTENSION, FONTS_DIR
from mkvfonts.config.tools import DEFAULT_TOOLS, Tools
from mkvfonts.core.metadata import ContainerMetadata
from mkvfonts.core.naming import encode_track_name
from mkvfonts.core.result import Result
from mkvfonts.operations.inspect import inspect_container
from mkvfonts.operations.subset import ass_font_subset
from mkvfonts.utils.logging import logger
from mkvfonts.utils.subprocess import ToolError, run_command


def plan_extraction(
    metadata: ContainerMetadata, output: Path
) -> tuple[dict[int, Path], dict[int, Path]]:
    """
    Compute destinations for every attachment and subtitle track.

    Args:
        metadata: Inspected container metadata
        output: Output directory for this container

    Returns:
        (attachment ID -> path, track ID -> path)
    """
    attachments = {
        item.id: output / FONTS_DIR / item.file_name for item in metadata.attachments
    }
    tracks = {
        track.id: output
        / encode_track_name(track.id, track.language, track.track_name, track.codec)
        for track in metadata.subtitle_tracks
    }
    return attachments, tracks


def build_extract_args(
    file: Path, attachments: dict[int, Path], tracks: dict[int, Path]
) -> list[str]:
    """Build mkvextract arguments for one batched extraction call."""
    args = [str(file), "attachments"]
    args += [f"{item_id}:{path}" for item_id, path in attachments.items()]
    args.append("tracks")
    args += [f"{track_id}:{path}" for track_id, path in tracks.items()]
    return args


def dump_mkv(
    file: Path,
    output: Path,
    subset: bool = False,
    tools: Tools = DEFAULT_TOOLS,
) -> Result:
    """
    Extract subtitle tracks and attachments, optionally subsetting fonts.

    Extracted files are kept even when subsetting fails.

    Args:
        file: Container to dump
        output: Output directory for this container
        subset: Run the font subsetting pipeline on extracted ASS tracks
        tools: External tool configuration

    Returns:
        Result of inspection, extraction and (if requested) subsetting
    """
    metadata = inspect_container(file, tools)
    if metadata is None:
        logger.error(f'Failed to get the mkv file info: "{file}".')
        return Result.inspection_failed(str(file))

    attachments, tracks = plan_extraction(metadata, output)
    output.mkdir(parents=True, exist_ok=True)

    try:
        run_command(
            [tools.mkvextract, *build_extract_args(file, attachments, tracks)],
            f"Extracting {len(tracks)} tracks and {len(attachments)} attachments from {file.name}",
        )
    except ToolError as e:
        return Result.tool_failed(str(e))

    if not subset:
        return Result.success(str(output))

    asses = [path for path in tracks.values() if path.suffix == ASS_EXTENSION]
    if not asses:
        return Result.success(str(output))

    result = ass_font_subset(asses)
    if not result:
        logger.error(f"Failed to subset fonts of {file}")
    return result
