import json
import zipfile
from pathlib import Path
from typing import IO, Union, NamedTuple

from ...errors import NotFoundError, ParseError
from ..models import Manifest


class ArchiveEntry(NamedTuple):
    """Metadata of one archive entry"""
    index: int
    name: str
    is_dir: bool


class ModpackArchive:
    """
    Open modpack zip with its parsed manifest

    The underlying file stays open until close() is called (or the
    ``with`` block ends). One installation owns one archive; it is not
    meant to be shared between threads.
    """

    MANIFEST_FILE = "manifest.json"

    def __init__(self, path: Union[str, Path]):
        """
        Opens the archive and decodes its manifest

        Args:
            path: Path to the modpack .zip

        Raises:
            NotFoundError: If the file or its manifest.json entry is missing
            ParseError: If the file is not a zip or the manifest is malformed
        """
        self.path = Path(path)
        if not self.path.is_file():
            raise NotFoundError(f"Modpack file not found: {self.path}")

        try:
            self._zip = zipfile.ZipFile(self.path, 'r')
        except zipfile.BadZipFile as e:
            raise ParseError(f"Not a valid zip archive: {self.path} ({e})") from e
        except OSError as e:
            raise NotFoundError(f"Could not open modpack file {self.path}: {e}") from e

        try:
            self._entries = self._zip.infolist()
            self.manifest = self._read_manifest()
        except Exception:
            self._zip.close()
            raise

    def _read_manifest(self) -> Manifest:
        # Exact, case-sensitive name at the archive root
        try:
            info = self._zip.getinfo(self.MANIFEST_FILE)
        except KeyError:
            raise NotFoundError(f"{self.MANIFEST_FILE} not found in {self.path.name}") from None

        try:
            raw = self._zip.read(info)
            data = json.loads(raw.decode('utf-8-sig'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ParseError(f"Malformed {self.MANIFEST_FILE}: {e}") from e
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
            raise ParseError(f"Could not read {self.MANIFEST_FILE}: {e}") from e
        except (RuntimeError, NotImplementedError) as e:
            # Encrypted entry or unsupported compression method
            raise ParseError(f"Cannot extract {self.MANIFEST_FILE}: {e}") from e

        return Manifest.from_dict(data)

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    def entry(self, index: int) -> ArchiveEntry:
        """Returns name and directory flag of the entry at index"""
        info = self._entries[index]
        return ArchiveEntry(index=index, name=info.filename, is_dir=info.is_dir())

    def open_entry(self, index: int) -> IO[bytes]:
        """Opens the decompressed content of the entry at index"""
        return self._zip.open(self._entries[index], 'r')

    def close(self):
        self._zip.close()

    def __enter__(self) -> "ModpackArchive":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def open_modpack(path: Union[str, Path]) -> ModpackArchive:
    """Opens a modpack archive (see ModpackArchive)"""
    return ModpackArchive(path)
