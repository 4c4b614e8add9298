"""
ASS font subsetting pipeline.

Turns a set of ASS files and a font pool into subset fonts with
collision-safe names plus ASS files that reference those names.

Pipeline:
  1. parse                    - Collect fonts and rendered characters per ASS file
  2. match-fonts              - Find a face in the font pool for every referenced font
  3. create-fonts-subset      - Subset each matched face to the characters it renders
  4. change-fonts-name        - Rename subset fonts to random identifiers and save them
  5. replace-font-name-in-ass - Point the ASS files at the new identifiers
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import ass
from fontTools.subset import Options, Subsetter
from fontTools.ttLib import TTFont

from mkvfonts.config.paths import ASS_EXTENSION, FONTS_DIR, SUBSETTED_DIR
from mkvfonts.core.ass import (
    FontKey,
    collect_font_usage,
    load_document,
    rename_fonts,
    save_document,
)
from mkvfonts.core.font_io import FontFace, get_font_size_kb, iter_fonts, read_faces
from mkvfonts.core.naming import (
    IdFactory,
    new_subset_id,
    rename_font_family,
    subset_font_filename,
)
from mkvfonts.core.result import Result
from mkvfonts.utils.logging import logger

# Characters every subset keeps regardless of the subtitle text
ALWAYS_KEPT = " "


@dataclass
class SubsetUnit:
    """One output font: a pool face serving one referenced family."""

    family: str
    face: FontFace
    characters: set[str] = field(default_factory=set)
    font: TTFont | None = None
    output: Path | None = None


class AssFontSubset:
    """
    Five-stage subsetting run over one set of ASS files.

    Each stage returns False on failure; later stages must not run after
    a failed one.
    """

    def __init__(
        self,
        files: list[Path],
        fonts_dir: Path,
        output_dir: Path,
        *,
        strict: bool = False,
        id_factory: IdFactory = new_subset_id,
    ):
        self.files = files
        self.fonts_dir = fonts_dir
        self.output_dir = output_dir
        self.strict = strict
        self.id_factory = id_factory

        self.documents: dict[Path, ass.Document] = {}
        self.usage: dict[FontKey, set[str]] = {}
        self.units: dict[tuple[str, Path, int], SubsetUnit] = {}
        self.unmatched: set[str] = set()
        self.ids: dict[str, str] = {}
        self.family_names: dict[str, str] = {}

    def parse(self) -> bool:
        """Load every ASS file and merge its font usage."""
        for path in self.files:
            try:
                doc = load_document(path)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to parse {path}: {e}")
                return False

            self.documents[path] = doc
            for key, characters in collect_font_usage(doc).items():
                self.usage.setdefault(key, set()).update(characters)
                self.family_names.setdefault(key.family.lower(), key.family)

        if not self.usage:
            logger.error("No fonts referenced by the subtitles")
            return False

        logger.info(
            f"Found {len(self.family_names)} font families in {len(self.files)} subtitle files"
        )
        return True

    def match_fonts(self) -> bool:
        """Pick the best pool face for every referenced font."""
        faces = [face for path in iter_fonts(self.fonts_dir) for face in read_faces(path)]
        if not faces:
            logger.error(f"No fonts found in {self.fonts_dir}")
            return False

        by_family: dict[str, list[FontFace]] = {}
        for face in faces:
            for family in face.families:
                by_family.setdefault(family.lower(), []).append(face)

        for key, characters in self.usage.items():
            family = key.family.lower()
            candidates = by_family.get(family)
            if not candidates:
                self.unmatched.add(key.family)
                continue

            face = max(
                candidates,
                key=lambda f: (f.bold == key.bold) + (f.italic == key.italic),
            )
            unit_key = (family, face.path, face.index)
            unit = self.units.setdefault(unit_key, SubsetUnit(family, face))
            unit.characters.update(characters)

        for family in sorted(self.unmatched):
            logger.warning(f"Font not found: {family}")

        if not self.units:
            logger.error("None of the referenced fonts were found")
            return False
        if self.unmatched and self.strict:
            logger.error(f"{len(self.unmatched)} fonts missing (strict mode)")
            return False
        return True

    def create_fonts_subset(self) -> bool:
        """Subset every matched face to the characters it renders."""
        for unit in self.units.values():
            options = Options()
            options.name_IDs = ["*"]
            options.name_languages = ["*"]
            options.name_legacy = True
            options.layout_features = ["*"]
            options.notdef_outline = True

            try:
                unit.font = TTFont(unit.face.path, fontNumber=unit.face.index)
                subsetter = Subsetter(options=options)
                subsetter.populate(text="".join(sorted(unit.characters)) + ALWAYS_KEPT)
                subsetter.subset(unit.font)
            except Exception as e:
                logger.error(f"Failed to subset {unit.face.path.name}: {e}")
                self._close_fonts()
                return False

            logger.debug(
                f"Subset {unit.face.path.name} to {len(unit.characters)} characters"
            )
        return True

    def _close_fonts(self) -> None:
        for unit in self.units.values():
            if unit.font is not None:
                unit.font.close()
                unit.font = None

    def _output_name(self, unit: SubsetUnit, subset_id: str, taken: set[str]) -> str:
        source = unit.face.path
        if unit.face.is_collection:
            extension = ".otf" if "CFF " in unit.font else ".ttf"
            source = source.with_name(f"{source.stem}-{unit.face.index}{extension}")

        name = subset_font_filename(source, subset_id)
        counter = 1
        while name in taken:
            name = subset_font_filename(
                source.with_name(f"{source.stem}-{counter}{source.suffix}"), subset_id
            )
            counter += 1
        taken.add(name)
        return name

    def change_fonts_name(self) -> bool:
        """Rename every subset font to its family identifier and save it."""
        used = set()
        for family in sorted({unit.family for unit in self.units.values()}):
            subset_id = self.id_factory()
            while subset_id in used:
                subset_id = self.id_factory()
            used.add(subset_id)
            self.ids[family] = subset_id

        self.output_dir.mkdir(parents=True, exist_ok=True)
        taken: set[str] = set()
        try:
            for unit in self.units.values():
                subset_id = self.ids[unit.family]
                unit.output = self.output_dir / self._output_name(unit, subset_id, taken)
                try:
                    rename_font_family(unit.font, subset_id)
                    unit.font.save(unit.output)
                except Exception as e:
                    logger.error(f"Failed to write {unit.output}: {e}")
                    return False

                logger.info(
                    f"Created {unit.output.name} ({get_font_size_kb(unit.output):.1f} KB) "
                    f"from {unit.face.path.name}"
                )
        finally:
            self._close_fonts()
        return True

    def replace_font_name_in_ass(self) -> bool:
        """Rewrite font references and save the ASS files to the output directory."""
        comments = [
            f"Font Subset: {subset_id} - {self.family_names.get(family, family)}"
            for family, subset_id in sorted(self.ids.items(), key=lambda item: item[1])
        ]

        for path, doc in self.documents.items():
            replaced = rename_fonts(doc, self.ids)
            output = self.output_dir / path.name
            try:
                save_document(doc, output, comments)
            except OSError as e:
                logger.error(f"Failed to write {output}: {e}")
                return False
            logger.debug(f"Replaced {replaced} font references in {output.name}")
        return True

    def run(self) -> Result:
        """Run all stages in order, stopping at the first failure."""
        stages: list[tuple[str, Callable[[], bool]]] = [
            ("parse", self.parse),
            ("match-fonts", self.match_fonts),
            ("create-fonts-subset", self.create_fonts_subset),
            ("change-fonts-name", self.change_fonts_name),
            ("replace-font-name-in-ass", self.replace_font_name_in_ass),
        ]

        for i, (name, stage) in enumerate(stages, 1):
            logger.debug(f"[{i}/{len(stages)}] Running {name}")
            if not stage():
                logger.error(f"{name} failed")
                return Result.pipeline_failed(f"{name} failed")

        if self.unmatched:
            missing = ", ".join(sorted(self.unmatched))
            return Result.degraded(f"Fonts not found: {missing}")
        return Result.success(str(self.output_dir))


def ass_font_subset(
    files: list[Path],
    fonts_dir: Path | None = None,
    output_dir: Path | None = None,
    dir_safe: bool = False,
    *,
    strict: bool = False,
    id_factory: IdFactory = new_subset_id,
) -> Result:
    """
    Subset the fonts used by a set of ASS files.

    Args:
        files: ASS files to process
        fonts_dir: Font pool; defaults to ``<dir of first file>/fonts``
        output_dir: Output directory; defaults to the directory of the first
            file, which also forces ``dir_safe``
        dir_safe: Write into a ``subsetted`` sub-directory of ``output_dir``
        strict: Fail when any referenced font is missing from the pool
        id_factory: Generator of subset font identifiers

    Returns:
        Result; ``degraded`` when some fonts were not found
    """
    if not files:
        logger.error("No ASS files to subset")
        return Result.pipeline_failed("No ASS files given")

    base = files[0].parent
    if fonts_dir is None:
        fonts_dir = base / FONTS_DIR
    if output_dir is None:
        output_dir = base
        dir_safe = True
    if dir_safe:
        output_dir = output_dir / SUBSETTED_DIR

    logger.info(f"Subsetting fonts for {len(files)} subtitle files into {output_dir}")
    return AssFontSubset(
        files, fonts_dir, output_dir, strict=strict, id_factory=id_factory
    ).run()


def subset_folder(
    directory: Path,
    fonts_dir: Path | None = None,
    output_dir: Path | None = None,
    *,
    strict: bool = False,
) -> Result:
    """Run the pipeline over every ASS file directly inside a directory."""
    files = sorted(directory.glob(f"*{ASS_EXTENSION}"))
    return ass_font_subset(files, fonts_dir, output_dir, strict=strict)
