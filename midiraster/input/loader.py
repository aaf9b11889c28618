"""MIDI file collection loading: files, directories and zip archives."""

import logging
import zipfile
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Tuple, Union

from ..core.constants import MIDI_SUFFIXES

logger = logging.getLogger(__name__)

Source = Tuple[str, bytes]


class MidiLoader:
    """Collects raw MIDI file bytes from the filesystem."""

    SUPPORTED_FORMATS = MIDI_SUFFIXES
    ARCHIVE_FORMATS = {".zip"}

    def __init__(self, recursive: bool = True):
        """
        Initialize MidiLoader.

        Args:
            recursive: Descend into subdirectories when given a directory
        """
        self.recursive = recursive

    def load(self, paths: Iterable[Union[str, Path]]) -> List[Source]:
        """
        Load every MIDI file reachable from the given paths.

        Args:
            paths: MIDI files, directories or zip archives

        Returns:
            List of (name, bytes) pairs in discovery order

        Raises:
            FileNotFoundError: If a path doesn't exist
            ValueError: If a file format is not supported
        """
        sources: List[Source] = []
        for path in paths:
            sources.extend(self.load_path(path))
        return sources

    def load_path(self, path: Union[str, Path]) -> List[Source]:
        """Load a single file, directory or archive."""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"MIDI input not found: {path}")

        if path.is_dir():
            return self._load_directory(path)

        suffix = path.suffix.lower()
        if suffix in self.ARCHIVE_FORMATS:
            return self.load_archive(path)
        if suffix not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS | self.ARCHIVE_FORMATS)}"
            )
        return [(str(path), path.read_bytes())]

    def load_archive(self, path: Union[str, Path]) -> List[Source]:
        """Load MIDI members of a zip archive, in archive order."""
        path = Path(path)
        sources = []
        with zipfile.ZipFile(path) as archive:
            for info in archive.infolist():
                if info.is_dir():
                    continue
                if PurePosixPath(info.filename).suffix.lower() not in self.SUPPORTED_FORMATS:
                    logger.debug("Skipping non-MIDI archive member %s", info.filename)
                    continue
                sources.append((f"{path.name}:{info.filename}", archive.read(info)))
        logger.info("Loaded %d MIDI files from %s", len(sources), path)
        return sources

    def _load_directory(self, path: Path) -> List[Source]:
        pattern = "**/*" if self.recursive else "*"
        files = sorted(
            p for p in path.glob(pattern)
            if p.is_file() and p.suffix.lower() in self.SUPPORTED_FORMATS
        )
        logger.info("Found %d MIDI files in %s", len(files), path)
        return [(str(p), p.read_bytes()) for p in files]
