"""
Command-line interface.
"""

import logging
import sys
import click
from enum import Enum
from pathlib import Path
from typing import Optional
from importlib.metadata import version, PackageNotFoundError
from .core.epub import find_algorithm
from .core.workflow import BookFetcher
from .utils.config import Config
from .utils.errors import BookFetcherError


class ConflictAction(Enum):
    """File conflict resolution actions"""
    OVERWRITE = "overwrite"
    SKIP = "skip"
    OVERWRITE_ALL = "overwrite_all"
    SKIP_ALL = "skip_all"


def get_version() -> str:
    """Get package version from metadata."""
    try:
        return version("book-fetcher")
    except PackageNotFoundError:
        return "0.1.0"  # Fallback for development


def _resolve_file_conflict(
    output_path: Path,
    href: str,
    remembered_choice: Optional[ConflictAction] = None
) -> ConflictAction:
    """
    Ask user how to handle an existing file.

    Args:
        output_path: Path to the existing output file
        href: Resource path inside the EPUB (for display purposes)
        remembered_choice: Previously remembered choice (overwrite_all/skip_all)

    Returns:
        ConflictAction indicating how to handle the file
    """
    if remembered_choice in (ConflictAction.OVERWRITE_ALL, ConflictAction.SKIP_ALL):
        return remembered_choice

    if not output_path.exists():
        return ConflictAction.OVERWRITE

    click.secho(f"\n⚠ File already exists: {output_path}", fg="yellow")

    import questionary
    choice = questionary.select(
        f"How to handle '{href}'?",
        choices=[
            questionary.Choice("Overwrite this file", value="overwrite"),
            questionary.Choice("Skip this file", value="skip"),
            questionary.Choice("Overwrite all remaining", value="overwrite_all"),
            questionary.Choice("Skip all remaining", value="skip_all"),
            questionary.Choice("Cancel operation", value="cancel"),
        ],
    ).ask()

    if choice is None or choice == "cancel":
        raise click.Abort()

    return ConflictAction(choice)


def _configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.group()
@click.version_option(version=get_version())
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, verbose):
    """book-fetcher - EPUB resource reader with font deobfuscation

    Reads resources out of EPUB packages, removing the IDPF and Adobe font
    obfuscation on the fly.
    """
    config = Config(log_level=logging.DEBUG if verbose else None)
    _configure_logging(config.log_level)
    ctx.obj = config


@cli.command()
@click.argument("epub_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def info(config, epub_file):
    """List the resources of an EPUB and their obfuscation

    Examples:

        book-fetcher info book.epub
    """
    try:
        fetcher = BookFetcher(config)
        with fetcher.open(epub_file) as container:
            click.echo(f"Package document: {container.package.opf_path}")
            click.echo(f"Unique identifier: {container.unique_identifier or '(none)'}")
            click.echo("")

            for link in container.links:
                line = f"{link.href}  [{link.type or 'unknown'}]"
                if link.encryption is not None:
                    if find_algorithm(link.encryption.algorithm):
                        click.echo(line + "  ", nl=False)
                        click.secho(f"obfuscated: {link.encryption.algorithm}", fg="green")
                        continue
                    click.echo(line + "  ", nl=False)
                    click.secho(f"encrypted: {link.encryption.algorithm} (unsupported)", fg="yellow")
                    continue
                click.echo(line)

    except BookFetcherError as e:
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        sys.exit(1)
    except Exception as e:
        click.secho(f"✗ Unexpected error: {e}", fg="red", err=True)
        sys.exit(1)


@cli.command()
@click.argument("epub_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("href")
@click.option("--start", type=click.IntRange(min=0), help="First byte offset (inclusive)")
@click.option("--end", type=click.IntRange(min=0), help="Last byte offset (exclusive)")
@click.pass_obj
def cat(config, epub_file, href, start, end):
    """Write one deobfuscated resource to stdout

    Examples:

        book-fetcher cat book.epub OEBPS/fonts/font.otf > font.otf

        book-fetcher cat book.epub OEBPS/fonts/font.otf --start 0 --end 16 | xxd
    """
    try:
        fetcher = BookFetcher(config)
        with fetcher.open(epub_file) as container:
            with fetcher.fetch(container, href) as resource:
                byte_range = None
                if start is not None or end is not None:
                    if end is None:
                        end = resource.length().get_or_raise()
                    byte_range = range(start or 0, end)
                data = resource.read(byte_range).get_or_raise()

        stdout = click.get_binary_stream("stdout")
        stdout.write(data)
        stdout.flush()

    except BookFetcherError as e:
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        sys.exit(1)
    except Exception as e:
        click.secho(f"✗ Unexpected error: {e}", fg="red", err=True)
        sys.exit(1)


@cli.command()
@click.argument("epub_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (default: $BOOK_FETCHER_OUTPUT_DIR or current directory)",
)
@click.option("--overwrite", is_flag=True, help="Overwrite existing files without asking")
@click.pass_obj
def extract(config, epub_file, output, overwrite):
    """Extract every resource of an EPUB with fonts deobfuscated

    Examples:

        book-fetcher extract book.epub

        book-fetcher extract book.epub -o ~/Books/unpacked/ --overwrite
    """
    remembered_choice: Optional[ConflictAction] = None

    def should_write(target: Path, href: str) -> bool:
        nonlocal remembered_choice
        if overwrite:
            return True
        action = _resolve_file_conflict(target, href, remembered_choice=remembered_choice)
        if action in (ConflictAction.OVERWRITE_ALL, ConflictAction.SKIP_ALL):
            remembered_choice = action
        return action in (ConflictAction.OVERWRITE, ConflictAction.OVERWRITE_ALL)

    try:
        if output is not None:
            config = Config(output_dir=output, log_level=config.log_level)
        fetcher = BookFetcher(config, echo=click.echo)

        written = fetcher.extract(epub_file, config.output_dir, should_write=should_write)

        click.secho(f"\n✓ Success! {len(written)} file(s) written to {config.output_dir}", fg="green", bold=True)

    except BookFetcherError as e:
        click.secho(f"\n✗ Error: {e}", fg="red", err=True)
        sys.exit(1)
    except click.Abort:
        raise
    except Exception as e:
        click.secho(f"\n✗ Unexpected error: {e}", fg="red", err=True)
        sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
