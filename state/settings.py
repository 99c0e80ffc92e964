"""
Per-folder crypt settings for RPGM Crypt.

Holds the key, engine version and output folder chosen for one game
folder, plus the decrypter built from that key.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from rpgm.decrypter import Decrypter
from rpgm.formats import RPGMakerVersion
from rpgm.key import Key


class CryptSettings:
    """Settings for one game folder."""

    def __init__(self):
        """Initialize settings with default values."""
        self.reset()

    def reset(self):
        """Reset all settings to defaults."""
        self.encryption_key: Optional[Key] = None
        self.decrypt_path: Optional[Path] = None    # Output folder (None = game folder)
        self.rpgmaker_version = RPGMakerVersion.default()
        self.decrypter: Optional[Decrypter] = None

    def update_encryption_key(self, key: Key):
        """Store a key and build a fresh decrypter for it."""
        self.encryption_key = key
        self.decrypter = Decrypter(key)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            'encryption_key': self.encryption_key.as_str() if self.encryption_key else None,
            'decrypt_path': str(self.decrypt_path) if self.decrypt_path else None,
            'rpgmaker_version': self.rpgmaker_version.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CryptSettings':
        """Load settings saved by `to_dict`. Invalid keys are dropped."""
        settings = cls()

        key_str = data.get('encryption_key')
        if key_str:
            key = Key.new(key_str)
            if key is not None:
                settings.update_encryption_key(key)

        decrypt_path = data.get('decrypt_path')
        if decrypt_path:
            settings.decrypt_path = Path(decrypt_path)

        version = data.get('rpgmaker_version')
        if version in ('MV', 'MZ'):
            settings.rpgmaker_version = RPGMakerVersion(version)

        return settings
