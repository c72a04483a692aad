"""Shared fixtures for building catalog assets and application settings."""

from pathlib import Path

import pytest
from PIL import Image

from src.config import Settings


def write_sound(
    assets_dir: Path,
    stem: str,
    author: str = "Jane Doe",
    tags: str = "nature-calm",
    publish_date: str = "2024-01-15",
    cover_size=(640, 480),
    with_description: bool = True,
    with_cover: bool = True
) -> None:
    """Write the audio, description and cover files for one sound."""
    (assets_dir / "music" / f"{stem}.mp3").write_bytes(b"ID3" + b"\x00" * 64)

    if with_description:
        (assets_dir / "description" / f"{stem}.txt").write_text(
            f"description: A recording of {stem}\n"
            f"tag: {tags}\n"
            f"author: {author}\n"
            f"last_updated: 2024-02-01\n"
            f"details: Recorded outdoors\n"
            f"publish_date: {publish_date}\n",
            encoding="utf-8"
        )

    if with_cover:
        Image.new("RGB", cover_size, color=(30, 60, 90)).save(
            assets_dir / "cover" / f"{stem}.jpg", "JPEG"
        )


@pytest.fixture
def assets_dir(tmp_path):
    """Empty assets tree with music, description and cover directories."""
    root = tmp_path / "assets"
    for name in ("music", "description", "cover"):
        (root / name).mkdir(parents=True)
    return root


@pytest.fixture
def sample_assets(assets_dir):
    """Assets tree with three complete sounds and one missing its cover."""
    write_sound(assets_dir, "rain_on_roof", author="Jane Doe", tags="nature-rain-calm", publish_date="2024-03-10")
    write_sound(assets_dir, "ocean", author="Sam Wave", tags="nature-water", publish_date="2023-07-01")
    write_sound(assets_dir, "city_night", author="jane doe", tags="urban-night", publish_date="2024-11-20")
    write_sound(assets_dir, "orphan", with_cover=False)
    return assets_dir


@pytest.fixture
def test_settings(tmp_path, assets_dir):
    """Settings pointing at a temporary database and assets tree."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'alarms.db'}",
        assets_dir=assets_dir,
        swagger_path=tmp_path / "swagger.yaml"
    )
