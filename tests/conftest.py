"""Shared fixtures for the RPGM Crypt tests."""

import pytest

from rpgm import Decrypter, Key

from .samples import TEST_KEY, make_png, make_ogg, make_m4a


@pytest.fixture
def key() -> Key:
    return Key.new(TEST_KEY)


@pytest.fixture
def decrypter(key) -> Decrypter:
    return Decrypter(key)


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def encrypted_png(decrypter, png_bytes) -> bytes:
    return decrypter.encrypt(png_bytes)


@pytest.fixture
def game_folder(tmp_path, decrypter):
    """A game folder with encrypted MV assets and one plain image."""
    root = tmp_path / "game"
    (root / "img" / "system").mkdir(parents=True)
    (root / "audio" / "bgm").mkdir(parents=True)

    (root / "img" / "system" / "Window.rpgmvp").write_bytes(decrypter.encrypt(make_png()))
    (root / "audio" / "bgm" / "Theme.rpgmvo").write_bytes(decrypter.encrypt(make_ogg()))
    (root / "audio" / "bgm" / "Battle.rpgmvm").write_bytes(decrypter.encrypt(make_m4a()))
    (root / "img" / "Title.png").write_bytes(make_png(8, 8))
    (root / "notes.txt").write_text("not an asset")
    return root
