"""
Catalog builder for the sound library.

A sound is assembled from three files sharing a base name:
- ``music/<name>.mp3``: the audio itself
- ``description/<name>.txt``: six labelled lines of metadata
- ``cover/<name>.jpg``: the cover image

The catalog is rebuilt from disk on every call; nothing is cached.
"""

import logging
import random
import time
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image

from src.models.api_models import (
    AudioReference,
    CoverDimensions,
    CoverReference,
    Sound,
    SoundMetadata,
    SoundStatistics
)
from src.observability import record_catalog_scan

logger = logging.getLogger(__name__)

AUDIO_EXTENSION = ".mp3"
DESCRIPTION_EXTENSION = ".txt"
COVER_EXTENSION = ".jpg"

DESCRIPTION_LABELS = (
    "description: ",
    "tag: ",
    "author: ",
    "last_updated: ",
    "details: ",
    "publish_date: ",
)


class DescriptionFormatError(Exception):
    """Raised when a description file does not follow the six-line layout."""
    pass


def humanize_title(stem: str) -> str:
    """
    Derive a display title from a file stem.

    Only the first underscore becomes a space, then every space-separated
    token gets an uppercase first letter: ``rain_on_roof`` -> ``Rain On_roof``.
    """
    words = stem.replace("_", " ", 1).split(" ")
    return " ".join(word[:1].upper() + word[1:] for word in words)


def parse_description(content: str) -> SoundMetadata:
    """
    Parse a description file into sound metadata.

    The file is positional: description, dash-separated tags, author,
    last-updated, details and publish date, one per line and in that order.
    A known label prefix is stripped from each line.

    Raises:
        DescriptionFormatError: If fewer than six lines are present
    """
    lines = content.splitlines()
    if len(lines) < len(DESCRIPTION_LABELS):
        raise DescriptionFormatError(
            f"Expected {len(DESCRIPTION_LABELS)} description lines, got {len(lines)}"
        )

    values = [
        line.strip().removeprefix(label)
        for line, label in zip(lines, DESCRIPTION_LABELS)
    ]
    description, tags, author, last_updated, details, publish_date = values

    return SoundMetadata(
        description=description,
        tags=[tag.strip() for tag in tags.split("-") if tag.strip()],
        author=author,
        lastUpdated=last_updated,
        details=details,
        publishDate=publish_date,
    )


def read_cover_dimensions(cover_path: Path) -> Tuple[int, int]:
    """Return (width, height) of an image, or (0, 0) if it cannot be decoded."""
    try:
        with Image.open(cover_path) as image:
            width, height = image.size
            return width or 0, height or 0
    except OSError as e:
        logger.warning(f"Could not read cover dimensions from {cover_path}: {e}")
        return 0, 0


class CatalogBuilder:
    """Builds the list of sounds from the assets directory."""

    def __init__(
        self,
        music_dir: Path,
        description_dir: Path,
        cover_dir: Path,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the catalog builder.

        Args:
            music_dir: Directory holding the audio files
            description_dir: Directory holding the description files
            cover_dir: Directory holding the cover images
            rng: Random source for the placeholder statistics
        """
        self.music_dir = Path(music_dir)
        self.description_dir = Path(description_dir)
        self.cover_dir = Path(cover_dir)
        self.rng = rng or random.Random()

    def build(self) -> List[Sound]:
        """
        Scan the assets and return a fresh list of sounds.

        Audio files without a description or cover are skipped. Any other
        error (unreadable directory, malformed description) aborts the scan
        and yields an empty catalog.
        """
        start_time = time.time()
        try:
            sounds = self._scan()
        except Exception as e:
            logger.exception(f"Catalog scan of {self.music_dir} failed: {e}")
            return []

        record_catalog_scan(len(sounds), time.time() - start_time)
        logger.info(f"Catalog scan produced {len(sounds)} sounds")
        return sounds

    def _scan(self) -> List[Sound]:
        candidates = sorted(
            entry for entry in self.music_dir.iterdir()
            if entry.is_file() and entry.name.endswith(AUDIO_EXTENSION)
        )

        sounds: List[Sound] = []
        for audio_path in candidates:
            stem = audio_path.name[:-len(AUDIO_EXTENSION)]
            description_path = self.description_dir / f"{stem}{DESCRIPTION_EXTENSION}"
            cover_path = self.cover_dir / f"{stem}{COVER_EXTENSION}"

            if not description_path.is_file() or not cover_path.is_file():
                logger.warning(f"Skipping {audio_path.name}: missing description or cover file")
                continue

            metadata = parse_description(description_path.read_text(encoding="utf-8"))
            width, height = read_cover_dimensions(cover_path)
            sound_id = len(sounds) + 1

            sounds.append(Sound(
                id=sound_id,
                name=humanize_title(stem),
                metadata=metadata,
                audio=AudioReference(
                    url=f"/audio/{audio_path.name}",
                    format=AUDIO_EXTENSION.lstrip("."),
                    duration=self.rng.randint(60, 359),
                ),
                cover=CoverReference(
                    url=f"/cover/{cover_path.name}",
                    format=COVER_EXTENSION.lstrip("."),
                    dimensions=CoverDimensions(width=width, height=height),
                ),
                statistics=self._random_statistics(),
                relatedSounds=self._random_related(sound_id, len(candidates)),
            ))

        return sounds

    def _random_statistics(self) -> SoundStatistics:
        return SoundStatistics(
            plays=self.rng.randint(0, 9999),
            favorites=self.rng.randint(0, 999),
            downloads=self.rng.randint(0, 4999),
        )

    def _random_related(self, sound_id: int, total: int) -> List[int]:
        picks = [self.rng.randint(1, total) for _ in range(self.rng.randint(1, 3))]
        return [pick for pick in picks if pick != sound_id]
