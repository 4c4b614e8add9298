"""
Container remuxing.

Builds a new container from an original file plus subtitle tracks and
attachments, restoring track language and title from track file names.
"""

from pathlib import Path

from mkvfonts.config.tools import DEFAULT_TOOLS, Tools
from mkvfonts.core.naming import decode_track_name
from mkvfonts.core.result import Result
from mkvfonts.utils.logging import logger
from mkvfonts.utils.subprocess import ToolError, run_command


def build_mux_args(
    file: Path,
    tracks: list[Path],
    attachments: list[Path],
    output: Path,
    default_language: str = "",
    default_title: str = "",
    clean: bool = False,
) -> list[str]:
    """
    Build mkvmerge arguments (without the executable).

    Each track is added as a single new stream, so its language and name
    options always address track ``0`` of that input.
    """
    args = ["--output", str(output)]
    if clean:
        args += ["--no-subtitles", "--no-attachments"]
    args.append(str(file))

    for attachment in attachments:
        args += ["--attach-file", str(attachment)]

    for track in tracks:
        name = decode_track_name(track, default_language, default_title)
        if name.language:
            args += ["--language", f"0:{name.language}"]
        if name.title:
            args += ["--track-name", f"0:{name.title}"]
        args.append(str(track))

    return args


def create_mkv(
    file: Path,
    tracks: list[Path],
    attachments: list[Path],
    output: Path,
    default_language: str = "",
    default_title: str = "",
    clean: bool = False,
    tools: Tools = DEFAULT_TOOLS,
) -> Result:
    """
    Mux a new container.

    Args:
        file: Original container
        tracks: Subtitle track files to add
        attachments: Files to attach as-is
        output: Output container path
        default_language: Language for tracks whose file name carries none
        default_title: Title for tracks whose file name carries none
        clean: Drop subtitles and attachments of the original container

    Returns:
        Result of the mkvmerge invocation
    """
    output.parent.mkdir(parents=True, exist_ok=True)
    args = build_mux_args(
        file, tracks, attachments, output, default_language, default_title, clean
    )

    try:
        run_command(
            [tools.mkvmerge, *args],
            f"Muxing {output.name} ({len(tracks)} tracks, {len(attachments)} attachments)",
        )
    except ToolError as e:
        logger.error(f"Failed to create the mkv file {output}: {e}")
        return Result.tool_failed(str(e))

    return Result.success(str(output))
