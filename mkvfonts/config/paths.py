"""
Filesystem layout constants.

Centralizes directory names and file extensions to avoid magic strings in
individual operations.
"""

# Workspace sub-directories
FONTS_DIR = "fonts"
SUBSETTED_DIR = "subsetted"

# Subtitle codecs and extensions
ASS_CODEC = "SubStationAlpha"
ASS_EXTENSION = ".ass"
OTHER_SUBTITLE_EXTENSION = ".sub"

# Font files accepted in a font pool
FONT_EXTENSIONS = (".ttf", ".otf", ".ttc", ".otc")

# Containers picked up by the batch flows
MKV_PATTERN = "*.mkv"

# Length of batch workspace directory names
WORKSPACE_NAME_LENGTH = 8
