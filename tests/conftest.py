from pathlib import Path

import pytest

FEEDS_DIR = Path(__file__).parent / "feeds"


@pytest.fixture
def feed_path():
    def _path(name: str) -> str:
        return str(FEEDS_DIR / name)
    return _path


@pytest.fixture
def feed_bytes():
    def _read(name: str) -> bytes:
        return (FEEDS_DIR / name).read_bytes()
    return _read
