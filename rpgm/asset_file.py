"""Game asset file bound to its path, contents and engine version."""

from pathlib import Path
from typing import Optional, Union

from .formats import FileExtension, FileType, RPGMakerVersion


class AssetFile:
    """An image or audio asset that can be renamed between plain and encrypted.

    Classification is always derived from the current path extension.
    """

    def __init__(self, path: Union[str, Path],
                 version: RPGMakerVersion = RPGMakerVersion.MV):
        """Create an asset with no contents loaded.

        Args:
            path: Asset file path
            version: Engine generation used when renaming to encrypted
        """
        self.path = Path(path)
        self.version = version
        self._content: Optional[bytes] = None

    def set_version(self, version: RPGMakerVersion):
        self.version = version

    def get_version(self) -> RPGMakerVersion:
        return self.version

    @property
    def content(self) -> Optional[bytes]:
        return self._content

    def set_content(self, content: bytes):
        self._content = bytes(content)

    def read(self) -> bytes:
        """Load contents from the current path."""
        with open(self.path, 'rb') as f:
            self._content = f.read()
        return self._content

    def write(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write contents to `path` (default: the current path).

        Returns:
            The path written
        """
        if self._content is None:
            raise ValueError(f"No content loaded for {self.path}")

        target = Path(path) if path is not None else self.path
        with open(target, 'wb') as f:
            f.write(self._content)
        return target

    def extension(self) -> Optional[FileExtension]:
        """Classify the current path extension."""
        suffix = self.path.suffix
        if not suffix:
            return None
        return FileExtension.from_str(suffix[1:])

    def convert_extension(self, to_normal: bool):
        """Rename the path to the plain or encrypted extension.

        Paths without a known extension are left alone.
        """
        current = self.extension()
        if current is None:
            return

        new_ext = current.convert(to_normal, self.version)
        self.path = self.path.with_suffix('.' + new_ext.to_str())

    def is_encrypted(self) -> bool:
        ext = self.extension()
        return ext is not None and ext.is_encrypted()

    def is_image(self) -> bool:
        ext = self.extension()
        return ext is not None and ext.get_file_type() is FileType.IMAGE

    def mime_type(self) -> Optional[str]:
        ext = self.extension()
        return ext.get_mime_type() if ext is not None else None

    def __repr__(self):
        return f"AssetFile({str(self.path)!r}, {self.version.value})"
