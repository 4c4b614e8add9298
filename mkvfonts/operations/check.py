"""
Subset completeness check.

Decides whether a container already carries subsetted fonts for its ASS
subtitle tracks, without running the subsetting pipeline.
"""

from pathlib import Path

from mkvfonts.config.tools import DEFAULT_TOOLS, Tools
from mkvfonts.core.metadata import ContainerMetadata
from mkvfonts.core.naming import is_subset_font_name
from mkvfonts.core.result import SubsetVerdict
from mkvfonts.operations.inspect import inspect_container
from mkvfonts.utils.logging import logger


def is_subset_complete(metadata: ContainerMetadata) -> bool:
    """
    Judge inspected metadata.

    A container without ASS subtitles is trivially complete. Otherwise at
    least one font attachment must carry the subset font name signature.
    """
    if not metadata.has_ass_subtitle:
        return True
    return any(
        attachment.is_font and is_subset_font_name(attachment.file_name)
        for attachment in metadata.attachments
    )


def check_subset(file: Path, tools: Tools = DEFAULT_TOOLS) -> SubsetVerdict:
    """
    Check whether a container needs font subsetting.

    Args:
        file: Path to the container
        tools: External tool configuration

    Returns:
        SubsetVerdict; ``inspection_failed`` is set when the file could not be judged
    """
    metadata = inspect_container(file, tools)
    if metadata is None:
        logger.error(f'Failed to get the mkv file info: "{file}".')
        return SubsetVerdict(complete=False, inspection_failed=True)
    return SubsetVerdict(complete=is_subset_complete(metadata))
