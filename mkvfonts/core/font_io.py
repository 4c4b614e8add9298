"""
Font I/O utilities for loading and traversing font files.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from fontTools.ttLib import TTCollection, TTFont

from mkvfonts.config.paths import FONT_EXTENSIONS
from mkvfonts.core.naming import get_family_names
from mkvfonts.utils.logging import logger

# head.macStyle bits
MAC_STYLE_BOLD = 1 << 0
MAC_STYLE_ITALIC = 1 << 1

# OS/2.fsSelection bits
FS_SELECTION_ITALIC = 1 << 0
FS_SELECTION_BOLD = 1 << 5

BOLD_WEIGHT_THRESHOLD = 600


@dataclass(frozen=True)
class FontFace:
    """One face of a font file (collections hold several)."""

    path: Path
    index: int
    families: frozenset[str]
    bold: bool = False
    italic: bool = False

    @property
    def is_collection(self) -> bool:
        return self.path.suffix.lower() in (".ttc", ".otc")


def iter_fonts(directory: Path, recursive: bool = True) -> Iterator[Path]:
    """
    Iterate over font files in a directory, sorted by path.

    Args:
        directory: Directory to search
        recursive: Whether to descend into sub-directories

    Yields:
        Paths to font files
    """
    if not directory.is_dir():
        return iter(())
    candidates = directory.rglob("*") if recursive else directory.glob("*")
    fonts = sorted(
        p for p in candidates if p.is_file() and p.suffix.lower() in FONT_EXTENSIONS
    )
    return iter(fonts)


def _style_of(font: TTFont) -> tuple[bool, bool]:
    """Return (bold, italic) flags of a face."""
    bold = italic = False
    if "OS/2" in font:
        os2 = font["OS/2"]
        bold = bool(os2.fsSelection & FS_SELECTION_BOLD) or (
            os2.usWeightClass >= BOLD_WEIGHT_THRESHOLD
        )
        italic = bool(os2.fsSelection & FS_SELECTION_ITALIC)
    elif "head" in font:
        mac_style = font["head"].macStyle
        bold = bool(mac_style & MAC_STYLE_BOLD)
        italic = bool(mac_style & MAC_STYLE_ITALIC)
    return bold, italic


def _describe(path: Path, index: int, font: TTFont) -> FontFace:
    bold, italic = _style_of(font)
    return FontFace(
        path=path,
        index=index,
        families=frozenset(get_family_names(font)),
        bold=bold,
        italic=italic,
    )


def read_faces(path: Path) -> list[FontFace]:
    """
    Read the faces of a font file.

    Unreadable files are logged and yield no faces.
    """
    try:
        if path.suffix.lower() in (".ttc", ".otc"):
            collection = TTCollection(path, lazy=True)
            try:
                return [
                    _describe(path, i, font) for i, font in enumerate(collection.fonts)
                ]
            finally:
                collection.close()

        font = TTFont(path, lazy=True)
        try:
            return [_describe(path, 0, font)]
        finally:
            font.close()
    except Exception as e:
        logger.warning(f"Skipping unreadable font {path.name}: {e}")
        return []


def get_font_size_kb(path: Path) -> float:
    """Get font file size in kilobytes."""
    return path.stat().st_size / 1024
