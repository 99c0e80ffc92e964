#!/usr/bin/env python3
"""
Command line interface for RPGM Crypt.

Decrypts and encrypts RPG Maker MV/MZ images and audio, and finds the
encryption key of a game.

Usage:
    python main.py [-v] <command> [arguments]
"""

import sys
from pathlib import Path
from typing import List, Optional

from crypt_manager import CryptManager
from rpgm.asset_file import AssetFile
from rpgm.decrypter import Decrypter
from rpgm.errors import CryptError, KeyDetectionFailedError
from rpgm.formats import RPGMakerVersion
from rpgm.key import Key
from rpgm.logging import CryptLogger
from state.constants import SETTINGS_FILE


def print_usage():
    print("Usage:")
    print("  python main.py [-v] detect <file>")
    print("  python main.py [-v] scan <folder>")
    print("  python main.py [-v] decrypt <file|folder> [output_dir] [key]")
    print("  python main.py [-v] encrypt <file|folder> <mv|mz> [output_dir] [key]")
    print("  python main.py [-v] restore <file> [output_dir] [key]")
    print("  python main.py [-v] verify <file>")
    print("")
    print("Examples:")
    print("  python main.py detect www/data/System.json")
    print("  python main.py scan www")
    print("  python main.py decrypt www/img decrypted")
    print("  python main.py encrypt img mz encrypted d41d8cd98f00b204e9800998ecf8427e")


# =============================================================================
# Helpers
# =============================================================================

def _game_folder(path: Path) -> Path:
    return path if path.is_dir() else path.parent


def _open_manager(folder: Path, key_str: Optional[str]) -> CryptManager:
    """Load saved settings, select the folder and make sure a key is set."""
    manager = CryptManager()
    manager.load_settings(SETTINGS_FILE)

    manager.set_current_directory(folder)
    if key_str:
        manager.update_encryption_key(Key.parse(key_str))
    if manager.get_decrypter() is None:
        raise KeyDetectionFailedError()

    return manager


def _run_on_path(manager: CryptManager, target: Path, encrypt: bool) -> int:
    if target.is_dir():
        report = manager.encrypt_folder(target) if encrypt else manager.decrypt_folder(target)
        print(report.summary())
        return 0 if report.ok else 1

    output = manager.encrypt_asset(target) if encrypt else manager.decrypt_asset(target)
    print(f"Wrote {output}")
    return 0


# =============================================================================
# Commands
# =============================================================================

def cmd_detect(args: List[str]) -> int:
    if not args:
        print("ERROR: File required")
        return 2

    with open(args[0], 'rb') as f:
        key = Decrypter.detect_key_from_file(f.read())
    if key is None:
        raise KeyDetectionFailedError()

    print(f"Encryption key: {key}")
    return 0


def cmd_scan(args: List[str]) -> int:
    if not args:
        print("ERROR: Folder required")
        return 2

    folder = Path(args[0])
    manager = CryptManager()
    manager.load_settings(SETTINGS_FILE)
    manager.set_current_directory(folder)

    settings = manager.get_settings()
    if settings.encryption_key is None:
        raise KeyDetectionFailedError()

    manager.save_settings(SETTINGS_FILE)
    print(f"Encryption key: {settings.encryption_key}")
    print(f"Saved to {SETTINGS_FILE}")
    return 0


def cmd_decrypt(args: List[str]) -> int:
    if not args:
        print("ERROR: File or folder required")
        return 2

    target = Path(args[0])
    output_dir = args[1] if len(args) > 1 else None
    key_str = args[2] if len(args) > 2 else None

    manager = _open_manager(_game_folder(target), key_str)
    if output_dir:
        manager.get_settings().decrypt_path = Path(output_dir)
    return _run_on_path(manager, target, encrypt=False)


def cmd_encrypt(args: List[str]) -> int:
    if len(args) < 2 or args[1].upper() not in ('MV', 'MZ'):
        print("ERROR: File or folder and engine version (mv|mz) required")
        return 2

    target = Path(args[0])
    output_dir = args[2] if len(args) > 2 else None
    key_str = args[3] if len(args) > 3 else None

    manager = _open_manager(_game_folder(target), key_str)
    settings = manager.get_settings()
    settings.rpgmaker_version = RPGMakerVersion(args[1].upper())
    if output_dir:
        settings.decrypt_path = Path(output_dir)
    return _run_on_path(manager, target, encrypt=True)


def cmd_restore(args: List[str]) -> int:
    if not args:
        print("ERROR: File required")
        return 2

    target = Path(args[0])
    output_dir = Path(args[1]) if len(args) > 1 and args[1] else target.parent
    key_str = args[2] if len(args) > 2 else None

    manager = _open_manager(_game_folder(target), key_str)

    asset = AssetFile(target)
    asset.set_content(manager.decrypt_file_with_header(target))
    asset.convert_extension(True)

    output_dir.mkdir(parents=True, exist_ok=True)
    output = asset.write(output_dir / asset.path.name)
    print(f"Wrote {output}")
    return 0


def cmd_verify(args: List[str]) -> int:
    if not args:
        print("ERROR: File required")
        return 2

    from rpgm.verify import verify_asset

    asset = AssetFile(args[0])
    file_ext = asset.extension()
    if file_ext is None or file_ext.is_encrypted():
        print("ERROR: Plain png, ogg or m4a file required")
        return 1

    if verify_asset(asset.read(), file_ext):
        print(f"OK: {asset.path} is a valid {file_ext.get_mime_type()} file")
        return 0

    print(f"FAILED: {asset.path} is not a valid {file_ext.get_mime_type()} file")
    return 1


COMMANDS = {
    'detect': cmd_detect,
    'scan': cmd_scan,
    'decrypt': cmd_decrypt,
    'encrypt': cmd_encrypt,
    'restore': cmd_restore,
    'verify': cmd_verify,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point."""
    args = list(sys.argv[1:] if argv is None else argv)

    if '-v' in args:
        args.remove('-v')
        CryptLogger.get_instance().verbose()

    if not args:
        print_usage()
        return 2

    command = args[0].lower()
    handler = COMMANDS.get(command)
    if handler is None:
        print(f"Unknown command: {command}")
        print_usage()
        return 2

    try:
        return handler(args[1:])
    except (CryptError, OSError) as e:
        print(f"ERROR: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
