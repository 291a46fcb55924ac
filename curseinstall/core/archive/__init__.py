"""Archive package - reading modpack zip files"""

from .reader import ModpackArchive, ArchiveEntry, open_modpack

__all__ = [
    "ModpackArchive",
    "ArchiveEntry",
    "open_modpack"
]
