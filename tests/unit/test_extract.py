"""Tests for container extraction."""

from pathlib import Path

from mkvfonts.core.result import ResultKind
from mkvfonts.operations.extract import dump_mkv


def test_extraction_mapping(mkvtoolnix, info_factory, tmp_path):
    """Test one batched mkvextract call with every attachment and subtitle."""
    mkvtoolnix.info["a.mkv"] = info_factory(
        attachments=[(1, "a.ttf", "font/ttf"), (2, "b.ttf", "font/ttf")],
        tracks=[
            (0, "video", "HEVC", "und", ""),
            (3, "subtitles", "SubStationAlpha", "eng", "Full"),
        ],
    )
    out = tmp_path / "out"

    result = dump_mkv(Path("a.mkv"), out)

    assert result.ok
    assert mkvtoolnix.commands("mkvextract") == [
        [
            "mkvextract",
            "a.mkv",
            "attachments",
            f"1:{out / 'fonts' / 'a.ttf'}",
            f"2:{out / 'fonts' / 'b.ttf'}",
            "tracks",
            f"3:{out / '3_eng_Full.ass'}",
        ]
    ]


def test_non_ass_tracks_use_sub_extension(mkvtoolnix, info_factory, tmp_path):
    """Test non-ASS subtitle tracks are extracted as .sub files."""
    mkvtoolnix.info["a.mkv"] = info_factory(tracks=[(4, "subtitles", "HDMV PGS", "jpn", "")])
    dump_mkv(Path("a.mkv"), tmp_path)
    assert mkvtoolnix.calls[-1][-1] == f"4:{tmp_path / '4_jpn_.sub'}"


def test_inspection_failure(mkvtoolnix, tmp_path):
    """Test extraction stops when the container cannot be inspected."""
    result = dump_mkv(Path("missing.mkv"), tmp_path)

    assert result.kind is ResultKind.INSPECTION_FAILED
    assert mkvtoolnix.commands("mkvextract") == []


def test_extract_tool_failure(mkvtoolnix, info_factory, tmp_path):
    """Test a failing mkvextract is reported as a tool failure."""
    mkvtoolnix.info["a.mkv"] = info_factory()
    mkvtoolnix.failing.add("mkvextract")

    assert dump_mkv(Path("a.mkv"), tmp_path).kind is ResultKind.TOOL_FAILED


def test_subset_failure_keeps_extracted_files(mkvtoolnix, info_factory, tmp_path, sample_ass):
    """Test a subsetting failure is reported but extracted files stay."""
    mkvtoolnix.info["a.mkv"] = info_factory(
        tracks=[(3, "subtitles", "SubStationAlpha", "eng", "Full")]
    )
    mkvtoolnix.payloads[3] = sample_ass

    result = dump_mkv(Path("a.mkv"), tmp_path / "out", subset=True)

    # No fonts were attached, so the pool is empty
    assert result.kind is ResultKind.PIPELINE_FAILED
    assert (tmp_path / "out" / "3_eng_Full.ass").exists()
