"""
ASS subtitle font usage.

Loads ASS documents with the ``ass`` library, works out which characters are
rendered with which font, and rewrites font references.
"""

import codecs
import io
import re
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path

import ass

from mkvfonts.utils.logging import logger

ENCODINGS = ("utf-8-sig", "gb18030")
UTF16_BOMS = (codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)
OUTPUT_ENCODING = "utf-8-sig"

DEFAULT_STYLE = "Default"
VERTICAL_PREFIX = "@"
BOLD_WEIGHT_THRESHOLD = 600

OVERRIDE_BLOCK = re.compile(r"\{[^}]*\}")
FONT_NAME_TAG = re.compile(r"(\\fn)([^\\}]*)")
INT_TAG_VALUE = re.compile(r"^\d+$")

# Escapes that never reach a glyph, or map to another character
TEXT_ESCAPES = {"\\N": "", "\\n": "", "\\h": "\u00a0"}
TEXT_ESCAPE = re.compile(r"\\[Nnh]")


@dataclass(frozen=True)
class FontKey:
    """A font as referenced by subtitle text."""

    family: str
    bold: bool = False
    italic: bool = False


def strip_vertical(name: str) -> str:
    """Drop the ``@`` vertical-writing prefix from a font name."""
    name = name.strip()
    return name[1:] if name.startswith(VERTICAL_PREFIX) else name


def load_document(path: Path) -> ass.Document:
    """
    Load an ASS document, trying common subtitle encodings.

    Raises:
        ValueError: If the file cannot be decoded or parsed
    """
    raw = path.read_bytes()
    # utf-16 decodes almost any even-length input, so require its BOM
    encodings = ("utf-16",) if raw.startswith(UTF16_BOMS) else ENCODINGS
    for encoding in encodings:
        try:
            text = raw.decode(encoding)
        except UnicodeDecodeError:
            continue
        logger.debug(f"Decoded {path.name} as {encoding}")
        return ass.Document.parse_file(io.StringIO(text))
    raise ValueError(f"Unsupported text encoding: {path}")


def save_document(doc: ass.Document, path: Path, comments: list[str] | None = None) -> None:
    """
    Write an ASS document, inserting comment lines after ``[Script Info]``.

    Args:
        doc: Document to write
        path: Output path
        comments: Comment lines without the leading ``;``
    """
    buffer = io.StringIO()
    doc.dump_file(buffer)
    text = buffer.getvalue()

    if comments:
        header = "[Script Info]"
        block = "".join(f"; {line}\n" for line in comments)
        if header in text:
            text = text.replace(header + "\n", header + "\n" + block, 1)
        else:
            text = block + text

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding=OUTPUT_ENCODING)


def _style_key(style) -> FontKey:
    return FontKey(strip_vertical(style.fontname), bool(style.bold), bool(style.italic))


def _flag(value: str, current: bool, weighted: bool = False) -> bool:
    """Interpret a ``\\b`` or ``\\i`` override value."""
    if not INT_TAG_VALUE.match(value):
        return current
    number = int(value)
    if weighted and number > 1:
        return number >= BOLD_WEIGHT_THRESHOLD
    return number == 1


def _visible_text(run: str) -> str:
    return TEXT_ESCAPE.sub(lambda m: TEXT_ESCAPES[m.group(0)], run)


def collect_font_usage(doc: ass.Document) -> dict[FontKey, set[str]]:
    """
    Map every font used by the dialogue of a document to the characters it renders.

    Style fonts are always reported, even if no dialogue uses them, so that
    unused styles still get a (minimal) subset.

    Args:
        doc: Parsed ASS document

    Returns:
        Characters per font key
    """
    styles = {style.name: _style_key(style) for style in doc.styles}
    fallback = styles.get(DEFAULT_STYLE) or next(iter(styles.values()), None)

    usage: dict[FontKey, set[str]] = defaultdict(set)
    for key in styles.values():
        usage.setdefault(key, set())

    for event in doc.events:
        if getattr(event, "TYPE", "Dialogue") != "Dialogue":
            continue

        base = styles.get(event.style.lstrip("*"), fallback)
        if base is None:
            logger.warning(f"Dialogue uses unknown style '{event.style}' and no fallback exists")
            continue

        current = base
        drawing = False
        position = 0
        text = event.text
        for block in OVERRIDE_BLOCK.finditer(text):
            if not drawing:
                usage[current].update(_visible_text(text[position : block.start()]))
            position = block.end()

            for tag in block.group(0)[1:-1].split("\\")[1:]:
                if tag.startswith("fn"):
                    family = strip_vertical(tag[2:].rstrip(")"))
                    current = FontKey(family or base.family, current.bold, current.italic)
                elif tag.startswith("r"):
                    current = styles.get(tag[1:].strip(), base) if tag[1:] else base
                elif tag.startswith("b") and INT_TAG_VALUE.match(tag[1:]):
                    current = FontKey(current.family, _flag(tag[1:], current.bold, True), current.italic)
                elif tag.startswith("i") and INT_TAG_VALUE.match(tag[1:]):
                    current = FontKey(current.family, current.bold, _flag(tag[1:], current.italic))
                elif tag.startswith("p") and INT_TAG_VALUE.match(tag[1:]):
                    drawing = int(tag[1:]) > 0

        if not drawing:
            usage[current].update(_visible_text(text[position:]))

    return dict(usage)


def rename_fonts(doc: ass.Document, mapping: dict[str, str]) -> int:
    """
    Replace font family references in styles and ``\\fn`` overrides.

    Args:
        doc: Document to modify in place
        mapping: Lower-cased original family name to new name

    Returns:
        Number of references replaced
    """
    replaced = 0

    def _new_name(name: str) -> str | None:
        stripped = name.strip()
        prefix = VERTICAL_PREFIX if stripped.startswith(VERTICAL_PREFIX) else ""
        new = mapping.get(strip_vertical(stripped).lower())
        return prefix + new if new else None

    for style in doc.styles:
        new = _new_name(style.fontname)
        if new:
            style.fontname = new
            replaced += 1

    def _replace_tag(match: re.Match) -> str:
        nonlocal replaced
        # a \t(...) animation closes right after its last tag
        name = match.group(2).rstrip(")")
        new = _new_name(name)
        if not new:
            return match.group(0)
        replaced += 1
        return match.group(1) + new + match.group(2)[len(name) :]

    def _replace_block(match: re.Match) -> str:
        return FONT_NAME_TAG.sub(_replace_tag, match.group(0))

    for event in doc.events:
        event.text = OVERRIDE_BLOCK.sub(_replace_block, event.text)

    return replaced
