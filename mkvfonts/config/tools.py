"""
External tool configuration.

MKVToolNix binaries are looked up on PATH unless overridden through the
environment or the command line.
"""

import os
from dataclasses import dataclass

MKVMERGE = "mkvmerge"
MKVEXTRACT = "mkvextract"

ENV_MKVMERGE = "MKVFONTS_MKVMERGE"
ENV_MKVEXTRACT = "MKVFONTS_MKVEXTRACT"


@dataclass(frozen=True)
class Tools:
    """Executables used for container inspection, extraction and muxing."""

    mkvmerge: str = MKVMERGE
    mkvextract: str = MKVEXTRACT

    @classmethod
    def from_env(
        cls, mkvmerge: str | None = None, mkvextract: str | None = None
    ) -> "Tools":
        """Resolve tools from explicit values, then environment, then defaults."""
        return cls(
            mkvmerge=mkvmerge or os.environ.get(ENV_MKVMERGE) or MKVMERGE,
            mkvextract=mkvextract or os.environ.get(ENV_MKVEXTRACT) or MKVEXTRACT,
        )


DEFAULT_TOOLS = Tools()
