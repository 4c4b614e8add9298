"""Shared pytest fixtures."""

import json
import shutil
import subprocess
from pathlib import Path

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen

from mkvfonts.utils.subprocess import ToolError

SAMPLE_ASS = r"""[Script Info]
ScriptType: v4.00+
PlayResX: 1920
PlayResY: 1080

[V4+ Styles]
Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding
Style: Default,Test Sans,48,&H00FFFFFF,&H000000FF,&H00000000,&H00000000,0,0,0,0,100,100,0,0,1,2,2,2,10,10,10,1
Style: Sign,@Other Font,40,&H00FFFFFF,&H000000FF,&H00000000,&H00000000,0,0,0,0,100,100,0,0,1,2,2,8,10,10,10,1

[Events]
Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text
Dialogue: 0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Hello{\fnOther Font}World
Dialogue: 0,0:00:02.00,0:00:03.00,Sign,,0,0,0,,abc
Comment: 0,0:00:03.00,0:00:04.00,Default,,0,0,0,,xyz
"""

FONT_CHARACTERS = "HeloWrdabcxyzXQ "


def build_font(
    path: Path,
    family: str,
    characters: str = FONT_CHARACTERS,
    style: str = "Regular",
    bold: bool = False,
) -> Path:
    """Write a tiny TrueType font with one square glyph per character."""
    glyph_names = [".notdef"] + [f"uni{ord(c):04X}" for c in characters]

    glyphs = {}
    for name in glyph_names:
        pen = TTGlyphPen(None)
        if name != "uni0020":
            pen.moveTo((50, 0))
            pen.lineTo((50, 500))
            pen.lineTo((450, 500))
            pen.lineTo((450, 0))
            pen.closePath()
        glyphs[name] = pen.glyph()

    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder(glyph_names)
    fb.setupCharacterMap({ord(c): f"uni{ord(c):04X}" for c in characters})
    fb.setupGlyf(glyphs)
    fb.setupHorizontalMetrics({name: (500, 50) for name in glyph_names})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable(
        {
            "familyName": family,
            "styleName": style,
            "uniqueFontIdentifier": f"{family}-{style}",
            "fullName": f"{family} {style}",
            "psName": f"{family.replace(' ', '')}-{style}",
        }
    )
    fb.setupOS2(
        sTypoAscender=800,
        sTypoDescender=-200,
        usWinAscent=800,
        usWinDescent=200,
        usWeightClass=700 if bold else 400,
        fsSelection=0x20 if bold else 0x40,
    )
    fb.setupPost()

    path.parent.mkdir(parents=True, exist_ok=True)
    fb.save(str(path))
    return path


def mkv_info(attachments=(), tracks=()) -> dict:
    """Build an ``mkvmerge -J`` style document."""
    return {
        "attachments": [
            {"id": i, "file_name": name, "size": 100, "content_type": content_type}
            for i, name, content_type in attachments
        ],
        "tracks": [
            {
                "id": i,
                "type": track_type,
                "codec": codec,
                "properties": {"language": language, "track_name": name},
            }
            for i, track_type, codec, language, name in tracks
        ],
    }


class FakeMkvToolNix:
    """
    Stand-in for mkvmerge and mkvextract.

    ``info`` maps container paths to ``-J`` documents (a string is returned
    verbatim). ``payloads`` maps track/attachment IDs to files that an
    extraction call copies into place. Muxing records a ``-J`` document for
    the output built from the attached files and added tracks.
    """

    def __init__(self):
        self.calls: list[list[str]] = []
        self.info: dict[str, dict | str] = {}
        self.payloads: dict[int, Path] = {}
        self.failing: set[str] = set()

    def __call__(self, cmd, description=None):
        self.calls.append(list(cmd))
        tool = cmd[0]
        if tool in self.failing:
            raise ToolError(list(cmd), f"{tool} exited with code 2", 2)

        if cmd[1] == "-J":
            info = self.info.get(cmd[2])
            if info is None:
                raise ToolError(list(cmd), f"{tool} exited with code 2", 2)
            stdout = info if isinstance(info, str) else json.dumps(info)
            return subprocess.CompletedProcess(cmd, 0, stdout, "")

        if tool == "mkvextract":
            self._extract(cmd[2:])
        elif "--output" in cmd:
            self._mux(cmd)
        return subprocess.CompletedProcess(cmd, 0, "", "")

    def _extract(self, args):
        for arg in args:
            if ":" not in arg:
                continue
            item_id, destination = arg.split(":", 1)
            source = self.payloads.get(int(item_id))
            if source is not None:
                Path(destination).parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, destination)

    def _mux(self, cmd):
        output = cmd[cmd.index("--output") + 1]
        attachments = [
            (i, Path(cmd[pos + 1]).name, "font/ttf")
            for i, pos in enumerate(
                (p for p, arg in enumerate(cmd) if arg == "--attach-file"), 1
            )
        ]
        tracks = [
            (100 + i, "subtitles", "SubStationAlpha", "", "")
            for i, arg in enumerate(cmd)
            if arg.endswith(".ass")
        ]
        self.info[output] = mkv_info(attachments, tracks)

    def commands(self, tool: str) -> list[list[str]]:
        return [c for c in self.calls if c[0] == tool]


@pytest.fixture
def mkvtoolnix(monkeypatch):
    """Replace every external tool call with a FakeMkvToolNix."""
    fake = FakeMkvToolNix()
    for module in (
        "mkvfonts.operations.inspect",
        "mkvfonts.operations.extract",
        "mkvfonts.operations.remux",
    ):
        monkeypatch.setattr(f"{module}.run_command", fake)
    return fake


@pytest.fixture
def sequential_ids():
    """Deterministic subset font identifiers."""
    counter = iter(range(1, 1000))
    return lambda: f"SUB{next(counter):05d}"


@pytest.fixture
def font_pool(tmp_path):
    """A font pool holding the two families used by SAMPLE_ASS."""
    pool = tmp_path / "pool"
    build_font(pool / "TestSans.ttf", "Test Sans")
    build_font(pool / "TestSans-Bold.ttf", "Test Sans", style="Bold", bold=True)
    build_font(pool / "OtherFont.ttf", "Other Font")
    return pool


@pytest.fixture
def sample_ass(tmp_path):
    """SAMPLE_ASS written to disk."""
    path = tmp_path / "subs" / "3_eng_Full.ass"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(SAMPLE_ASS, encoding="utf-8")
    return path


@pytest.fixture
def font_factory():
    """Expose build_font to tests."""
    return build_font


@pytest.fixture
def info_factory():
    """Expose mkv_info to tests."""
    return mkv_info


@pytest.fixture
def ass_text():
    """The SAMPLE_ASS document text."""
    return SAMPLE_ASS
