"""
Naming conventions shared by extraction, subsetting and remuxing.

Two conventions live here:

- Extracted subtitle tracks are stored as ``<trackID>_<language>_<title>.<ext>``
  so that language and title survive a round trip through loose files.
- Subsetted fonts are renamed to a random identifier and written as
  ``<stem>.<ID><ext>``. ``SUBSET_FONT_PATTERN`` recognizes those files again.
"""

import re
import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from fontTools.ttLib import TTFont

from mkvfonts.config.paths import (
    ASS_CODEC,
    ASS_EXTENSION,
    OTHER_SUBTITLE_EXTENSION,
)

FIELD_SEPARATOR = "_"

SUBSET_ID_LENGTH = 8
SUBSET_ID_ALPHABET = string.ascii_uppercase + string.digits
SUBSET_FONT_PATTERN = re.compile(
    rf"\.[A-Z0-9]{{{SUBSET_ID_LENGTH}}}\.\S+$"
)

# Name IDs that carry the family identity of a font
NAME_ID_FAMILY = 1
NAME_ID_UNIQUE_ID = 3
NAME_ID_FULL_NAME = 4
NAME_ID_POSTSCRIPT = 6
NAME_ID_TYPO_FAMILY = 16
NAME_ID_TYPO_SUBFAMILY = 17
NAME_ID_WWS_FAMILY = 21
NAME_ID_WWS_SUBFAMILY = 22

IdFactory = Callable[[], str]


@dataclass(frozen=True)
class TrackName:
    """Track metadata carried by an extracted subtitle file name."""

    track_id: int | None
    language: str = ""
    title: str = ""


def subtitle_extension(codec: str) -> str:
    """File extension for an extracted subtitle track of the given codec."""
    return ASS_EXTENSION if codec == ASS_CODEC else OTHER_SUBTITLE_EXTENSION


def encode_track_name(track_id: int, language: str, title: str, codec: str) -> str:
    """
    Build the file name for an extracted subtitle track.

    Args:
        track_id: Track ID inside the container
        language: Track language (may be empty)
        title: Track name (may be empty)
        codec: Codec as reported by mkvmerge

    Returns:
        Base name such as ``3_eng_Full.ass``
    """
    stem = FIELD_SEPARATOR.join((str(track_id), language, title))
    return stem + subtitle_extension(codec)


def decode_track_name(
    path: str | Path,
    default_language: str = "",
    default_title: str = "",
    *,
    strict: bool = False,
) -> TrackName:
    """
    Recover track metadata from a file name written by ``encode_track_name``.

    The base name without extension is split on ``_`` into at most three
    fields. Missing or empty language and title fields fall back to the
    defaults. A title may itself contain ``_``.

    Args:
        path: Track file path
        default_language: Language used when the name carries none
        default_title: Title used when the name carries none
        strict: Raise instead of returning ``track_id=None`` for a bad ID

    Returns:
        Decoded TrackName

    Raises:
        ValueError: If strict and the first field is not an integer
    """
    fields = Path(path).stem.split(FIELD_SEPARATOR, 2)

    try:
        track_id = int(fields[0])
    except ValueError:
        if strict:
            raise ValueError(f"No track ID in file name: {Path(path).name}") from None
        track_id = None

    language = fields[1] if len(fields) > 1 and fields[1] else default_language
    title = fields[2] if len(fields) > 2 and fields[2] else default_title
    return TrackName(track_id, language, title)


def new_subset_id() -> str:
    """Random identifier for a subsetted font, e.g. ``AB12CD34``."""
    return "".join(secrets.choice(SUBSET_ID_ALPHABET) for _ in range(SUBSET_ID_LENGTH))


def subset_font_filename(original: str | Path, subset_id: str) -> str:
    """File name of a renamed subset font: ``<stem>.<ID><ext>``."""
    original = Path(original)
    return f"{original.stem}.{subset_id}{original.suffix.lower()}"


def is_subset_font_name(file_name: str) -> bool:
    """Whether a file name carries the subset font signature."""
    return SUBSET_FONT_PATTERN.search(file_name) is not None


def get_family_names(font: TTFont) -> set[str]:
    """
    Collect every family name a font can be referenced by.

    Reads name IDs 1, 4 and 16 for all platforms and languages.
    """
    names = set()
    if "name" not in font:
        return names

    for record in font["name"].names:
        if record.nameID not in (NAME_ID_FAMILY, NAME_ID_FULL_NAME, NAME_ID_TYPO_FAMILY):
            continue
        try:
            text = record.toUnicode().strip()
        except UnicodeDecodeError:
            continue
        if text:
            names.add(text)
    return names


def rename_font_family(font: TTFont, subset_id: str) -> None:
    """
    Replace the family identity of a font with a subset identifier.

    Args:
        font: TTFont instance to modify
        subset_id: New family name
    """
    name_table = font["name"]

    for record in name_table.names:
        # nameID 1: Font Family name
        if record.nameID == NAME_ID_FAMILY:
            record.string = subset_id

        # nameID 3: Unique identifier
        elif record.nameID == NAME_ID_UNIQUE_ID:
            record.string = f"{subset_id};Subset"

        # nameID 4: Full font name
        elif record.nameID == NAME_ID_FULL_NAME:
            record.string = subset_id

        # nameID 6: PostScript name
        elif record.nameID == NAME_ID_POSTSCRIPT:
            record.string = subset_id

        # nameID 16: Typographic Family
        elif record.nameID == NAME_ID_TYPO_FAMILY:
            record.string = subset_id

    # Subfamily overrides would still point renderers at the old family
    for name_id in (NAME_ID_TYPO_SUBFAMILY, NAME_ID_WWS_FAMILY, NAME_ID_WWS_SUBFAMILY):
        name_table.removeNames(nameID=name_id)

    if "CFF " in font:
        cff = font["CFF "].cff
        cff.fontNames = [subset_id for _ in cff.fontNames]
        for top_dict in cff.topDictIndex:
            top_dict.FamilyName = subset_id
            top_dict.FullName = subset_id
