"""
Folder-level asset encryption for RPGM Crypt

Reads assets from a game folder, runs them through the engine and writes
the results, mirroring the folder layout into an output folder:
- Keys are taken from the settings or found by scanning encrypted images
- Single files can be decrypted to memory or written to disk
- Folder operations keep going past failed files and report them all

Usage:
    from crypt_manager import CryptManager

    manager = CryptManager()
    manager.set_current_directory('MyGame/www')
    report = manager.decrypt_folder('MyGame/www/img')
    for path, error in report.errors:
        print(path, error)
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from rpgm.asset_file import AssetFile
from rpgm.decrypter import Decrypter
from rpgm.errors import (
    CryptError, InvalidExtensionError, KeyDetectionFailedError
)
from rpgm.formats import FileExtension
from rpgm.key import Key
from rpgm.logging import CryptLogger, crypt_log
from state.constants import KEY_SOURCE_EXTENSIONS
from state.settings import CryptSettings
from utils.helpers import hex_preview

PathLike = Union[str, Path]


# =============================================================================
# Batch results
# =============================================================================

@dataclass
class BatchReport:
    """Outcome of a folder-wide operation."""
    processed: List[Path] = field(default_factory=list)
    errors: List[Tuple[Path, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        lines = [f"Processed {len(self.processed)} files, {len(self.errors)} failed"]
        for path, error in self.errors:
            lines.append(f"  {path}: {error}")
        return '\n'.join(lines)


# =============================================================================
# File collection
# =============================================================================

def collect_assets(folder: PathLike, encrypted: Optional[bool] = None) -> List[Path]:
    """Collect all known asset files below a folder.

    Args:
        folder: Folder to walk recursively
        encrypted: Only encrypted (True) or only plain (False) assets; None for both

    Returns:
        Sorted list of asset paths
    """
    assets = []

    for root, dirs, files in os.walk(folder):
        for filename in files:
            asset = AssetFile(Path(root) / filename)
            if asset.extension() is None:
                continue
            if encrypted is not None and asset.is_encrypted() != encrypted:
                continue
            assets.append(asset.path)

    return sorted(assets)


# =============================================================================
# Crypt manager
# =============================================================================

class CryptManager:
    """Keeps per-folder settings and runs file and folder operations."""

    def __init__(self):
        self.settings: Dict[Path, CryptSettings] = {}
        self.current_folder: Optional[Path] = None

    # === Settings ===

    def get_settings(self) -> Optional[CryptSettings]:
        """Settings of the current folder."""
        if self.current_folder is None:
            return None
        return self.settings.get(self.current_folder)

    def get_decrypter(self) -> Optional[Decrypter]:
        settings = self.get_settings()
        return settings.decrypter if settings else None

    def _require_decrypter(self) -> Decrypter:
        decrypter = self.get_decrypter()
        if decrypter is None:
            raise KeyDetectionFailedError()
        return decrypter

    def set_current_directory(self, path: PathLike) -> CryptSettings:
        """Select a game folder, scanning it for a key if none is known.

        Args:
            path: Game folder

        Returns:
            The folder's settings
        """
        path = Path(path)
        crypt_log('INFO', "Setting current directory", {'path': path})

        self.current_folder = path
        settings = self.settings.setdefault(path, CryptSettings())

        if settings.encryption_key is None:
            key = self.scan_for_key(path)
            if key is not None:
                self.update_encryption_key(key)

        return settings

    def update_encryption_key(self, key: Key):
        """Use a key for the current folder."""
        settings = self.get_settings()
        if settings is None:
            crypt_log('WARNING', "No folder selected, key not stored", {'key': key})
            return

        crypt_log('INFO', "Setting encryption key", {
            'previous': settings.encryption_key,
            'key': key
        })
        settings.update_encryption_key(key)

    def save_settings(self, path: PathLike):
        """Write all folder settings to a JSON file."""
        data = {
            'current_folder': str(self.current_folder) if self.current_folder else None,
            'folders': {str(folder): s.to_dict() for folder, s in self.settings.items()},
        }
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

    def load_settings(self, path: PathLike) -> bool:
        """Load folder settings written by `save_settings`.

        Returns:
            True if the file existed and was read
        """
        path = Path(path)
        if not path.exists():
            return False

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        self.settings = {
            Path(folder): CryptSettings.from_dict(entry)
            for folder, entry in data.get('folders', {}).items()
        }
        current = data.get('current_folder')
        self.current_folder = Path(current) if current else None
        return True

    # === Key detection ===

    def try_extract_key(self, path: PathLike) -> Optional[Key]:
        """Detect the key from an encrypted image file."""
        path = Path(path)
        if path.suffix[1:].lower() not in KEY_SOURCE_EXTENSIONS:
            crypt_log('DEBUG', "Skipping key extraction, not an encrypted image", {'path': path})
            return None

        try:
            with open(path, 'rb') as f:
                file_data = f.read()
        except OSError as e:
            crypt_log('WARNING', "Failed to read file", {'path': path, 'error': e})
            return None

        if CryptLogger.get_instance().is_enabled_for('DEBUG'):
            crypt_log('DEBUG', "Attempting key extraction", {
                'path': path,
                'size': len(file_data),
                'head': hex_preview(file_data)
            })

        key = Decrypter.detect_key_from_file(file_data)
        if key is None:
            crypt_log('INFO', "No valid encryption key found", {'path': path})
        else:
            crypt_log('INFO', "Extracted key", {'path': path, 'key': key})
        return key

    def scan_for_key(self, folder: PathLike) -> Optional[Key]:
        """Find the key in the first encrypted image that yields one."""
        for root, dirs, files in os.walk(folder):
            dirs.sort()
            for filename in sorted(files):
                key = self.try_extract_key(Path(root) / filename)
                if key is not None:
                    return key
        return None

    # === Single files ===

    @staticmethod
    def is_file_encrypted(path: PathLike) -> bool:
        return AssetFile(path).is_encrypted()

    def decrypt_file(self, path: PathLike) -> bytes:
        """Decrypt a file to memory without restoring its header."""
        decrypter = self._require_decrypter()
        with open(path, 'rb') as f:
            file_data = f.read()
        return decrypter.decrypt(file_data)

    def decrypt_file_with_header(self, path: PathLike) -> bytes:
        """Decrypt a file to memory and restore its true header."""
        decrypter = self._require_decrypter()

        asset = AssetFile(path)
        file_ext = self._require_extension(asset)
        decrypted = decrypter.decrypt(asset.read())
        return decrypter.restore_header(decrypted, file_ext)

    def encrypt_asset(self, path: PathLike) -> Path:
        """Encrypt a plain asset into the output folder.

        Returns:
            Path of the written encrypted file
        """
        decrypter = self._require_decrypter()
        settings = self.get_settings()

        asset = AssetFile(path, settings.rpgmaker_version)
        self._require_extension(asset)

        crypt_log('INFO', "Encrypting file", {'path': asset.path})
        asset.read()
        asset.set_content(decrypter.encrypt(asset.content))
        asset.convert_extension(False)

        return self._write_output(Path(path), asset)

    def decrypt_asset(self, path: PathLike) -> Path:
        """Decrypt an encrypted asset into the output folder.

        Returns:
            Path of the written plain file
        """
        decrypter = self._require_decrypter()
        settings = self.get_settings()

        asset = AssetFile(path, settings.rpgmaker_version)
        file_ext = self._require_extension(asset)
        if not asset.is_encrypted():
            raise InvalidExtensionError(f"{file_ext.to_str()} (file is not encrypted)")

        file_data = asset.read()
        crypt_log('INFO', "Decrypting file", {
            'path': asset.path,
            'type': file_ext.to_str(),
            'head': hex_preview(file_data)
        })

        decrypted = decrypter.decrypt(file_data)
        restored = decrypter.restore_header(decrypted, file_ext)
        crypt_log('DEBUG', "Restored header", {'head': hex_preview(restored)})

        asset.set_content(restored)
        asset.convert_extension(True)

        return self._write_output(Path(path), asset)

    @staticmethod
    def _require_extension(asset: AssetFile) -> FileExtension:
        file_ext = asset.extension()
        if file_ext is None:
            raise InvalidExtensionError(asset.path.suffix or asset.path.name)
        return file_ext

    def _output_root(self) -> Tuple[Path, Path]:
        root = self.current_folder
        settings = self.get_settings()
        out = settings.decrypt_path if settings and settings.decrypt_path else root
        return root, out

    def _write_output(self, source: Path, asset: AssetFile) -> Path:
        """Write an asset under the output folder, keeping its relative path."""
        root, out = self._output_root()

        try:
            relative = source.relative_to(root)
        except ValueError:
            relative = Path(source.name)

        output_path = (out / relative).with_name(asset.path.name)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        asset.write(output_path)

        crypt_log('INFO', "Wrote file", {'path': output_path, 'size': len(asset.content)})
        return output_path

    # === Folders ===

    def encrypt_folder(self, path: PathLike) -> BatchReport:
        """Encrypt every plain asset below a folder."""
        return self._run_batch(collect_assets(path, encrypted=False), self.encrypt_asset, 'encrypt')

    def decrypt_folder(self, path: PathLike) -> BatchReport:
        """Decrypt every encrypted asset below a folder."""
        return self._run_batch(collect_assets(path, encrypted=True), self.decrypt_asset, 'decrypt')

    def _run_batch(self, paths: List[Path], operation, verb: str) -> BatchReport:
        report = BatchReport()

        for path in paths:
            try:
                report.processed.append(operation(path))
            except (CryptError, OSError) as e:
                crypt_log('ERROR', f"Failed to {verb} file", {'path': path, 'error': e})
                report.errors.append((path, str(e)))

        crypt_log('INFO', f"Batch {verb} complete", {
            'processed': len(report.processed),
            'failed': len(report.errors)
        })
        return report
