"""
Main workflow orchestration.
"""

import logging
from pathlib import Path
from typing import Callable, Iterable

from .epub import EpubContainer, EPUBDeobfuscator, find_algorithm
from .fetcher import Resource, ResourceTransformer
from ..utils.config import Config
from ..utils.errors import ResourceError, WorkflowError

logger = logging.getLogger(__name__)


def apply_transformers(resource: Resource, transformers: Iterable[ResourceTransformer]) -> Resource:
    """Run ``resource`` through each transformer, in order."""
    for transform in transformers:
        resource = transform(resource)
    return resource


class BookFetcher:
    """Reads EPUB resources through the transformer pipeline."""

    def __init__(self, config: Config, echo: Callable[[str], None] | None = None):
        """
        Args:
            config: Configuration
            echo: Progress reporter (optional), e.g. ``click.echo``
        """
        self.config = config
        self.echo = echo or (lambda message: None)

    def open(self, epub_path: Path) -> EpubContainer:
        return EpubContainer(epub_path)

    def transformers_for(self, container: EpubContainer) -> list[ResourceTransformer]:
        """Build the transformer pipeline for a publication."""
        transformers: list[ResourceTransformer] = []
        identifier = container.unique_identifier
        if identifier:
            transformers.append(EPUBDeobfuscator(identifier))
        else:
            logger.warning("No unique identifier in %s, fonts stay obfuscated", container.path)
        return transformers

    def fetch(self, container: EpubContainer, href: str) -> Resource:
        """Get a resource of the container with every transformer applied."""
        return apply_transformers(container.get(href), self.transformers_for(container))

    def extract(
        self,
        epub_path: Path,
        output_dir: Path | None = None,
        should_write: Callable[[Path, str], bool] | None = None,
    ) -> list[Path]:
        """
        Extract every resource of an EPUB, deobfuscated.

        Args:
            epub_path: EPUB file path
            output_dir: Output directory (default: configured output directory)
            should_write: Called with the target path and href when the target
                already exists; returning False skips the file

        Returns:
            Paths of the written files

        Raises:
            WorkflowError: A resource could not be read or written
        """
        output_dir = (output_dir or self.config.output_dir).expanduser().resolve()
        written: list[Path] = []

        with self.open(epub_path) as container:
            transformers = self.transformers_for(container)

            for link in container.links:
                target = (output_dir / link.href).resolve()
                if not target.is_relative_to(output_dir):
                    raise WorkflowError(f"Refusing to write outside output directory: {link.href}")

                if target.exists() and should_write is not None and not should_write(target, link.href):
                    self.echo(f"Skipped: {link.href}")
                    continue

                if link.encryption is not None and find_algorithm(link.encryption.algorithm):
                    self.echo(f"Deobfuscating {link.href}...")

                with apply_transformers(container.get(link.href), transformers) as resource:
                    try:
                        data = resource.read().get_or_raise()
                    except ResourceError as e:
                        raise WorkflowError(f"Failed to read {link.href}: {e}")

                try:
                    target.parent.mkdir(parents=True, exist_ok=True)
                    target.write_bytes(data)
                except OSError as e:
                    raise WorkflowError(f"Failed to write {target}: {e}")

                written.append(target)

        self.echo(f"✓ Extracted {len(written)} file(s) to {output_dir}")
        return written
