"""
Batch orchestration.

Every flow enumerates files under a root, processes them one at a time in
sorted order, logs one progress line per file and counts failures. A batch
succeeds iff no file failed.
"""

import secrets
import shutil
import string
import tempfile
from collections.abc import Callable, Iterator
from pathlib import Path

from mkvfonts.config.paths import (
    ASS_EXTENSION,
    MKV_PATTERN,
    OTHER_SUBTITLE_EXTENSION,
    SUBSETTED_DIR,
    WORKSPACE_NAME_LENGTH,
)
from mkvfonts.config.tools import DEFAULT_TOOLS, Tools
from mkvfonts.core.font_io import iter_fonts
from mkvfonts.core.result import BatchReport, ResultKind
from mkvfonts.operations.check import check_subset
from mkvfonts.operations.extract import dump_mkv
from mkvfonts.operations.remux import create_mkv
from mkvfonts.operations.subset import ass_font_subset
from mkvfonts.utils.logging import logger

NameFactory = Callable[[], str]

# Characters that may follow the video stem in a companion file name
COMPANION_SEPARATORS = (".", "_", "-")


def random_name(length: int = WORKSPACE_NAME_LENGTH) -> str:
    """Random directory name of lowercase letters and digits."""
    alphabet = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


class Workspace:
    """A batch-scoped scratch directory, removed when the batch ends."""

    def __init__(self, root: Path):
        self.root = root

    def for_file(self, name: str) -> Path:
        """Fresh per-file directory; the previous file's content is cleared."""
        if self.root.exists():
            shutil.rmtree(self.root)
        path = self.root / name
        path.mkdir(parents=True)
        return path

    def cleanup(self) -> None:
        if self.root.exists():
            shutil.rmtree(self.root)
            logger.debug(f"Removed workspace {self.root}")

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()


class WorkspaceFactory:
    """
    Creates batch workspaces.

    Args:
        base: Parent directory; defaults to the system temp directory
        name_factory: Generator of workspace directory names
    """

    def __init__(self, base: Path | None = None, name_factory: NameFactory = random_name):
        self.base = base
        self.name_factory = name_factory

    def create(self) -> Workspace:
        base = self.base if self.base is not None else Path(tempfile.gettempdir())
        return Workspace(base / self.name_factory())


def find_mkvs(directory: Path) -> list[Path]:
    """All Matroska files below a directory, sorted by path."""
    return sorted(p for p in directory.rglob(MKV_PATTERN) if p.is_file())


def find_files(directory: Path) -> list[Path]:
    """All files with an extension below a directory, sorted by path."""
    return sorted(p for p in directory.rglob("*") if p.is_file() and p.suffix)


def is_companion(path: Path, stem: str) -> bool:
    """Whether a file belongs to the video with this stem, e.g. ``ep01.srt`` or ``ep01_chs.ass``."""
    name = path.name
    return name.startswith(stem) and name[len(stem) : len(stem) + 1] in COMPANION_SEPARATORS


def _iter_progress(flow: str, files: list[Path], report: BatchReport) -> Iterator[Path]:
    report.total = len(files)
    for i, file in enumerate(files, 1):
        yield file
        logger.info(f"{flow} ({i}/{len(files)}) done.")


def query_folder(directory: Path, tools: Tools = DEFAULT_TOOLS) -> BatchReport:
    """
    List containers whose ASS subtitles lack subsetted fonts.

    Files that cannot be inspected are counted as failures and left out of
    the list.
    """
    report = BatchReport()
    for file in _iter_progress("Query", find_mkvs(directory), report):
        verdict = check_subset(file, tools)
        if verdict.inspection_failed:
            report.failed += 1
        elif not verdict.complete:
            report.items.append(str(file))
    return report


def dump_mkvs(
    directory: Path,
    output: Path,
    subset: bool = False,
    tools: Tools = DEFAULT_TOOLS,
) -> BatchReport:
    """
    Dump every container below a directory.

    Each container is extracted to ``<output>/<relative dir>/<file stem>/``.
    """
    report = BatchReport()
    for file in _iter_progress("Dump", find_mkvs(directory), report):
        relative = file.relative_to(directory)
        destination = output / relative.parent / file.stem
        result = dump_mkv(file, destination, subset, tools)
        if result.ok:
            report.items.append(str(destination))
        else:
            report.failed += 1
            logger.error(f'Failed to dump the mkv file "{file}".')
        if result.kind is ResultKind.DEGRADED:
            logger.warning(f"{file.name}: {result.detail}")
    return report


def create_mkvs(
    video_dir: Path,
    subtitle_dir: Path,
    fonts_dir: Path,
    output_dir: Path,
    default_language: str = "",
    default_title: str = "",
    clean: bool = False,
    tools: Tools = DEFAULT_TOOLS,
    workspace_factory: WorkspaceFactory | None = None,
) -> BatchReport:
    """
    Mux videos with companion subtitles and subsetted fonts.

    Companion files live in ``subtitle_dir`` and start with the video's file
    stem followed by ``.``, ``_`` or ``-``. ASS companions are copied into
    the batch workspace and subset against ``fonts_dir``; other companions
    are muxed as-is. Output goes to ``<output_dir>/<stem>.mkv``.
    """
    factory = workspace_factory or WorkspaceFactory()
    companions = find_files(subtitle_dir)
    report = BatchReport()

    with factory.create() as workspace:
        for file in _iter_progress("Create", find_files(video_dir), report):
            stem = file.stem
            matched = [p for p in companions if is_companion(p, stem)]
            subs = [p for p in matched if p.suffix != ASS_EXTENSION]
            asses = [p for p in matched if p.suffix == ASS_EXTENSION]

            failed = False
            attachments: list[Path] = []
            tracks: list[Path] = []

            if asses:
                work_dir = workspace.for_file(stem)
                copies = []
                for sub in asses:
                    copy = work_dir / sub.name
                    shutil.copy2(sub, copy)
                    copies.append(copy)

                result = ass_font_subset(copies, fonts_dir)
                if result.ok:
                    subsetted = work_dir / SUBSETTED_DIR
                    attachments = list(iter_fonts(subsetted, recursive=False))
                    tracks = sorted(subsetted.glob(f"*{ASS_EXTENSION}"))
                else:
                    failed = True

            tracks += subs
            destination = output_dir / f"{stem}.mkv"
            if not create_mkv(
                file,
                tracks,
                attachments,
                destination,
                default_language,
                default_title,
                clean,
                tools,
            ):
                failed = True

            if failed:
                report.failed += 1
                logger.error(f'Failed to create the mkv file: "{file}".')
            else:
                report.items.append(str(destination))

    return report


def make_mkvs(
    directory: Path,
    data_dir: Path,
    output: Path,
    default_language: str = "",
    default_title: str = "",
    tools: Tools = DEFAULT_TOOLS,
) -> BatchReport:
    """
    Remux containers from a previous subsetting dump.

    For every container below ``directory`` the dump in
    ``<data_dir>/<relative dir>/<stem>/`` provides ``.sub`` tracks plus the
    ``subsetted`` ASS files and fonts. Original subtitles and attachments are
    dropped. Output goes to ``<output>/<relative dir>/<file name>``.
    """
    report = BatchReport()
    for file in _iter_progress("Make", find_mkvs(directory), report):
        relative = file.relative_to(directory)
        dump_dir = data_dir / relative.parent / file.stem
        subsetted = dump_dir / SUBSETTED_DIR

        subs = sorted(dump_dir.glob(f"*{OTHER_SUBTITLE_EXTENSION}"))
        asses = sorted(subsetted.glob(f"*{ASS_EXTENSION}"))
        attachments = list(iter_fonts(subsetted, recursive=False))

        destination = output / relative
        if create_mkv(
            file,
            subs + asses,
            attachments,
            destination,
            default_language,
            default_title,
            True,
            tools,
        ):
            report.items.append(str(destination))
        else:
            report.failed += 1
            logger.error(f'Failed to make the mkv file: "{file}".')
    return report
