"""
Container inspection.

Reads track and attachment metadata through ``mkvmerge -J``.
"""

import json
from pathlib import Path

from mkvfonts.config.tools import DEFAULT_TOOLS, Tools
from mkvfonts.core.metadata import ContainerMetadata
from mkvfonts.utils.logging import logger
from mkvfonts.utils.subprocess import ToolError, run_command


def inspect_container(
    file: Path, tools: Tools = DEFAULT_TOOLS
) -> ContainerMetadata | None:
    """
    Query a container for its tracks and attachments.

    Args:
        file: Path to the container
        tools: External tool configuration

    Returns:
        ContainerMetadata, or None if the tool failed or its output was unusable
    """
    try:
        result = run_command([tools.mkvmerge, "-J", str(file)])
    except ToolError as e:
        logger.error(f"Failed to inspect {file}: {e}")
        return None

    try:
        return ContainerMetadata.from_json(json.loads(result.stdout))
    except (json.JSONDecodeError, TypeError, ValueError, KeyError) as e:
        logger.error(f"Unusable mkvmerge output for {file}: {e}")
        return None
