"""
Copies the override files stored inside a modpack archive
"""
import shutil
import zipfile
from pathlib import Path
from typing import Optional, Callable, Union

from ...core.archive.reader import ModpackArchive
from ...core.models import Manifest
from ...errors import ParseError, PathTraversalError, StorageError
from ...utils.path_utils import sanitize_zip_path, is_within_directory


def copy_overrides(
    archive: ModpackArchive,
    manifest: Manifest,
    target_dir: Union[str, Path],
    log_callback: Optional[Callable[[str, str], None]] = None
) -> int:
    """
    Copies every file under the overrides folder into the target folder

    Files that already exist in the target are left untouched, so local
    edits survive a reinstall.

    Args:
        archive: Open modpack archive
        manifest: Manifest of the archive (gives the overrides folder)
        target_dir: Installation folder
        log_callback: Function receiving (message, log_type)

    Returns:
        Number of files copied

    Raises:
        PathTraversalError: If any entry name is unsafe
        StorageError: If a file cannot be written
    """
    target = Path(target_dir)
    prefix = manifest.overrides_prefix.parts
    copied = 0
    skipped = 0

    for index in range(archive.entry_count):
        entry = archive.entry(index)

        relative = sanitize_zip_path(entry.name)
        if relative is None:
            raise PathTraversalError(entry.name)

        if entry.is_dir or relative.parts[:len(prefix)] != prefix:
            continue

        inner_parts = relative.parts[len(prefix):]
        if not inner_parts:
            continue

        dest_file = target.joinpath(*inner_parts)
        if not is_within_directory(target, dest_file):
            raise PathTraversalError(entry.name)

        if dest_file.exists():
            skipped += 1
            continue

        try:
            dest_file.parent.mkdir(parents=True, exist_ok=True)
            with archive.open_entry(index) as source, open(dest_file, 'wb') as dest:
                shutil.copyfileobj(source, dest)
        except (zipfile.BadZipFile, RuntimeError, NotImplementedError) as e:
            # Corrupt, encrypted or unsupported compression
            _remove_partial(dest_file)
            raise ParseError(f"Cannot extract archive entry {entry.name}: {e}") from e
        except OSError as e:
            _remove_partial(dest_file)
            raise StorageError(f"Could not copy override {entry.name}: {e}") from e

        copied += 1

    if log_callback:
        log_callback(f"Copied {copied} override files", "success")
        if skipped:
            log_callback(f" ({skipped} already present)", "normal")
        log_callback("\n", "normal")

    return copied


def _remove_partial(path: Path):
    try:
        path.unlink()
    except OSError:
        pass
