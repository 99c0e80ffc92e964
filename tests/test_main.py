"""Tests for the command line interface."""

import json

import pytest

import main as cli
from rpgm.decrypter import Decrypter
from rpgm.key import Key
from rpgm.logging import CryptLogger

from .samples import TEST_KEY, make_png


@pytest.fixture(autouse=True)
def in_tmp(tmp_path, monkeypatch):
    # Settings file is written to the working directory
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(CryptLogger, "_instance", None)


def test_no_arguments(capsys):
    assert cli.main([]) == 2
    assert "Usage:" in capsys.readouterr().out


def test_unknown_command(capsys):
    assert cli.main(["explode"]) == 2
    assert "Unknown command: explode" in capsys.readouterr().out


def test_detect(game_folder, capsys):
    assert cli.main(["detect", str(game_folder / "img" / "system" / "Window.rpgmvp")]) == 0
    assert TEST_KEY in capsys.readouterr().out


def test_detect_fails(tmp_path, capsys):
    path = tmp_path / "System.json"
    path.write_text(json.dumps({"gameTitle": "No key"}))
    assert cli.main(["detect", str(path)]) == 1
    assert "Failed to detect encryption key" in capsys.readouterr().out


def test_missing_file(capsys):
    assert cli.main(["detect", "missing.rpgmvp"]) == 1
    assert "ERROR" in capsys.readouterr().out


def test_scan_saves_settings(game_folder, tmp_path):
    assert cli.main(["scan", str(game_folder)]) == 0
    data = json.loads((tmp_path / "rpgm_crypt.json").read_text())
    assert data['folders'][str(game_folder)]['encryption_key'] == TEST_KEY


def test_decrypt_folder(game_folder, tmp_path, capsys):
    assert cli.main(["decrypt", str(game_folder), str(tmp_path / "out")]) == 0
    assert "Processed 3 files, 0 failed" in capsys.readouterr().out
    assert (tmp_path / "out" / "img" / "system" / "Window.png").read_bytes() == make_png()


def test_encrypt_file_with_key(tmp_path, capsys):
    source = tmp_path / "Face.png"
    source.write_bytes(make_png())

    assert cli.main(["-v", "encrypt", str(source), "mz", "", TEST_KEY]) == 0
    assert (tmp_path / "Face.png_").exists()


def test_encrypt_bad_key(tmp_path, capsys):
    source = tmp_path / "Face.png"
    source.write_bytes(make_png())
    assert cli.main(["encrypt", str(source), "mv", "", "xyz"]) == 1
    assert "Invalid encryption key" in capsys.readouterr().out


def test_encrypt_requires_version(capsys):
    assert cli.main(["encrypt", "Face.png", "xp"]) == 2


@pytest.fixture
def encrypted_window(tmp_path):
    path = tmp_path / "game" / "Window.png_"
    path.parent.mkdir()
    path.write_bytes(Decrypter(Key.new(TEST_KEY)).encrypt(make_png()))
    return path


def test_restore_with_key(encrypted_window, tmp_path):
    out = tmp_path / "fixed"
    assert cli.main(["restore", str(encrypted_window), str(out), TEST_KEY]) == 0
    assert (out / "Window.png").read_bytes() == make_png()


def test_restore_detects_key(encrypted_window, tmp_path, capsys):
    assert cli.main(["restore", str(encrypted_window)]) == 0
    assert "Window.png" in capsys.readouterr().out
    assert (encrypted_window.parent / "Window.png").read_bytes() == make_png()


def test_restore_plain_file_fails(encrypted_window, capsys):
    plain = encrypted_window.parent / "Title.png"
    plain.write_bytes(make_png())
    assert cli.main(["restore", str(plain), "", TEST_KEY]) == 1
    assert "Invalid file header" in capsys.readouterr().out


def test_verbose_prints_debug_events(game_folder, capsys):
    path = game_folder / "img" / "system" / "Window.rpgmvp"
    assert cli.main(["-v", "detect", str(path)]) == 0

    captured = capsys.readouterr()
    assert TEST_KEY in captured.out
    assert "[CRYPT:DEBUG]" in captured.err
    assert "Key recovered from PNG header" in captured.err


def test_verify(tmp_path, capsys):
    good = tmp_path / "Good.png"
    good.write_bytes(make_png())
    assert cli.main(["verify", str(good)]) == 0

    assert cli.main(["verify", str(tmp_path / "Good.rpgmvp")]) == 1
    assert "Plain png" in capsys.readouterr().out


def test_key_argument_overrides_detected(game_folder, tmp_path):
    # A wrong key still decrypts, it just leaves the start of each file scrambled
    assert cli.main(["decrypt", str(game_folder), str(tmp_path / "out"), "00"]) == 0
    assert (tmp_path / "out" / "img" / "system" / "Window.png").read_bytes() != make_png()
