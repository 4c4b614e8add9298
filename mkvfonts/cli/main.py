"""
Main CLI entry point for mkvfonts.
"""

import sys
from pathlib import Path

import click

from mkvfonts import __version__

existing_dir = click.Path(exists=True, file_okay=False, path_type=Path)
output_dir = click.Path(file_okay=False, path_type=Path)


def _finish(report, flow: str) -> None:
    """Exit nonzero when any file of the batch failed."""
    from mkvfonts.utils.logging import logger

    logger.info(f"{flow}: {report.total - report.failed}/{report.total} succeeded")
    if not report.ok:
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("--mkvmerge", default=None, help="mkvmerge executable.")
@click.option("--mkvextract", default=None, help="mkvextract executable.")
@click.pass_context
def cli(ctx, verbose, mkvmerge, mkvextract):
    """Subset fonts of ASS subtitles in Matroska files."""
    from mkvfonts.config.tools import Tools
    from mkvfonts.utils.logging import set_verbose

    set_verbose(verbose)
    ctx.obj = Tools.from_env(mkvmerge, mkvextract)


@cli.command()
@click.argument("directory", type=existing_dir)
@click.option(
    "--output",
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the list of files to this file instead of stdout.",
)
@click.pass_obj
def query(tools, directory, output_file):
    """List MKV files whose ASS subtitles lack subsetted fonts."""
    from mkvfonts.pipeline.batch import query_folder

    report = query_folder(directory, tools)
    lines = "\n".join(report.items)
    if output_file:
        output_file.write_text(lines + "\n" if lines else "", encoding="utf-8")
    elif lines:
        click.echo(lines)
    _finish(report, "Query")


@cli.command()
@click.argument("directory", type=existing_dir)
@click.argument("output", type=output_dir)
@click.option("--subset", is_flag=True, help="Subset fonts of extracted ASS tracks.")
@click.pass_obj
def dump(tools, directory, output, subset):
    """Extract subtitles and attachments of every MKV file."""
    from mkvfonts.pipeline.batch import dump_mkvs

    _finish(dump_mkvs(directory, output, subset, tools), "Dump")


@cli.command()
@click.argument("videos", type=existing_dir)
@click.argument("subtitles", type=existing_dir)
@click.argument("fonts", type=existing_dir)
@click.argument("output", type=output_dir)
@click.option("--language", default="", help="Default subtitle language.")
@click.option("--title", default="", help="Default subtitle track name.")
@click.option("--clean", is_flag=True, help="Drop existing subtitles and attachments.")
@click.option(
    "--temp",
    "temp_dir",
    type=output_dir,
    default=None,
    help="Parent directory for the batch workspace.",
)
@click.pass_obj
def create(tools, videos, subtitles, fonts, output, language, title, clean, temp_dir):
    """Mux videos with companion subtitles and subsetted fonts."""
    from mkvfonts.pipeline.batch import WorkspaceFactory, create_mkvs

    report = create_mkvs(
        videos,
        subtitles,
        fonts,
        output,
        language,
        title,
        clean,
        tools,
        WorkspaceFactory(temp_dir),
    )
    _finish(report, "Create")


@cli.command()
@click.argument("directory", type=existing_dir)
@click.argument("data", type=existing_dir)
@click.argument("output", type=output_dir)
@click.option("--language", default="", help="Default subtitle language.")
@click.option("--title", default="", help="Default subtitle track name.")
@click.pass_obj
def make(tools, directory, data, output, language, title):
    """Remux MKV files from a subsetted dump."""
    from mkvfonts.pipeline.batch import make_mkvs

    _finish(make_mkvs(directory, data, output, language, title, tools), "Make")


@cli.command()
@click.argument("directory", type=existing_dir)
@click.option("--fonts", "fonts_dir", type=existing_dir, default=None, help="Font pool.")
@click.option("--output", "output", type=output_dir, default=None, help="Output directory.")
@click.option("--strict", is_flag=True, help="Fail when any font is missing.")
def subset(directory, fonts_dir, output, strict):
    """Subset fonts for the ASS files in a directory."""
    from mkvfonts.operations.subset import subset_folder
    from mkvfonts.utils.logging import logger

    result = subset_folder(directory, fonts_dir, output, strict=strict)
    if result.detail:
        logger.info(f"{result.kind.value}: {result.detail}")
    if not result.ok:
        sys.exit(1)


if __name__ == "__main__":
    cli()
