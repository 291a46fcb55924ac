"""
Data models for modpack manifests and resolved downloads

Remote JSON is converted into these dataclasses in one place
(``from_dict`` / ``from_api``) so the rest of the installer works with
named, validated fields.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Optional, Dict, List, Tuple, Any

from ..errors import ParseError

DEFAULT_OVERRIDES_FOLDER = "overrides"


def _get_int(data: Dict, *keys: str, required: bool = True) -> Optional[int]:
    """Reads the first present key as a non-negative integer"""
    for key in keys:
        if key in data and data[key] is not None:
            value = data[key]
            # bool is a subclass of int
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ParseError(f"Field '{key}' must be a non-negative integer, got {value!r}")
            return value
    if required:
        raise ParseError(f"Missing required field '{keys[0]}'")
    return None


def _get_str(data: Dict, key: str, default: Optional[str] = None) -> Optional[str]:
    value = data.get(key, default)
    if value is not None and not isinstance(value, str):
        raise ParseError(f"Field '{key}' must be a string, got {value!r}")
    return value


@dataclass(frozen=True)
class ManifestEntry:
    """One remote file referenced by the manifest"""
    file_id: int
    project_id: Optional[int] = None
    # Parsed for display only, required and optional files install the same way
    required: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ManifestEntry":
        if not isinstance(data, dict):
            raise ParseError(f"Manifest file entry must be an object, got {data!r}")

        required = data.get("required")
        if required is not None and not isinstance(required, bool):
            raise ParseError(f"Field 'required' must be a boolean, got {required!r}")

        return cls(
            file_id=_get_int(data, "fileID", "fileId"),
            project_id=_get_int(data, "projectID", "projectId", required=False),
            required=required
        )


@dataclass(frozen=True)
class Manifest:
    """Parsed manifest.json of a modpack archive"""
    files: Tuple[ManifestEntry, ...]
    name: str
    version: str
    overrides_folder: str = DEFAULT_OVERRIDES_FOLDER
    author: Optional[str] = None
    manifest_type: Optional[str] = None
    manifest_version: Optional[int] = None
    minecraft_version: Optional[str] = None
    mod_loader: Optional[str] = None

    @property
    def overrides_prefix(self) -> PurePosixPath:
        """Overrides folder as a path, compared component by component"""
        return PurePosixPath(self.overrides_folder)

    @classmethod
    def from_dict(cls, data: Any) -> "Manifest":
        """
        Builds a Manifest from decoded manifest.json content

        Args:
            data: Decoded JSON document

        Returns:
            Manifest instance

        Raises:
            ParseError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ParseError("Manifest must be a JSON object")

        files = data.get("files")
        if not isinstance(files, list):
            raise ParseError("Manifest field 'files' must be a list")

        overrides = _get_str(data, "overrides")
        if overrides is None:
            overrides = DEFAULT_OVERRIDES_FOLDER
        overrides = overrides.replace("\\", "/").strip("/")
        if not overrides or any(part in (".", "..") for part in overrides.split("/")):
            raise ParseError(f"Invalid overrides folder: {data.get('overrides')!r}")

        manifest_version = data.get("manifestVersion")
        if manifest_version is not None:
            manifest_version = _get_int(data, "manifestVersion")

        minecraft = data.get("minecraft") or {}
        if not isinstance(minecraft, dict):
            raise ParseError("Manifest field 'minecraft' must be an object")

        # The primary loader is flagged, otherwise the first one wins
        mod_loader = None
        loaders = minecraft.get("modLoaders") or []
        if isinstance(loaders, list):
            for loader in loaders:
                if isinstance(loader, dict) and loader.get("primary"):
                    mod_loader = loader.get("id")
                    break
            if mod_loader is None and loaders and isinstance(loaders[0], dict):
                mod_loader = loaders[0].get("id")

        return cls(
            files=tuple(ManifestEntry.from_dict(entry) for entry in files),
            name=(_get_str(data, "name", "") or "").strip(),
            version=_get_str(data, "version", "") or "",
            overrides_folder=overrides,
            author=_get_str(data, "author"),
            manifest_type=_get_str(data, "manifestType"),
            manifest_version=manifest_version,
            minecraft_version=_get_str(minecraft, "version"),
            mod_loader=mod_loader if isinstance(mod_loader, str) else None
        )


@dataclass(frozen=True)
class ResolvedFile:
    """Download metadata returned by the API for one manifest entry"""
    display_name: str
    file_name: str
    download_url: Optional[str] = None
    file_id: Optional[int] = None
    mod_id: Optional[int] = None

    @classmethod
    def from_api(cls, data: Any) -> "ResolvedFile":
        """
        Builds a ResolvedFile from one element of the API 'data' array

        Raises:
            ParseError: If displayName or fileName are missing
        """
        if not isinstance(data, dict):
            raise ParseError(f"File metadata must be an object, got {data!r}")

        file_name = _get_str(data, "fileName")
        if not file_name:
            raise ParseError(f"File metadata without 'fileName': {data!r}")

        # displayName falls back to the file name when the API leaves it empty
        display_name = _get_str(data, "displayName") or file_name

        return cls(
            display_name=display_name,
            file_name=file_name,
            download_url=_get_str(data, "downloadUrl") or None,
            file_id=_get_int(data, "id", required=False),
            mod_id=_get_int(data, "modId", required=False)
        )

    @property
    def manual_download_page(self) -> Optional[str]:
        """CurseForge project page, where the file can be downloaded by hand"""
        if self.mod_id is None:
            return None
        # Redirects to the project page, no slug needed
        return f"https://www.curseforge.com/projects/{self.mod_id}"


class DownloadStatus(Enum):
    """Result of a single file download"""
    DOWNLOADED = "downloaded"
    SKIPPED = "skipped"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class DownloadOutcome:
    """Record of what happened to one resolved file"""
    file: ResolvedFile
    status: DownloadStatus
    destination: Optional[Path] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (DownloadStatus.DOWNLOADED, DownloadStatus.SKIPPED)

    def to_dict(self) -> Dict:
        return {
            "display_name": self.file.display_name,
            "file_name": self.file.file_name,
            "status": self.status.value,
            "destination": str(self.destination) if self.destination else None,
            "reason": self.error
        }


@dataclass
class DownloadReport:
    """Outcomes of a whole download run, in API response order"""
    outcomes: List[DownloadOutcome] = field(default_factory=list)

    def with_status(self, *statuses: DownloadStatus) -> List[DownloadOutcome]:
        return [o for o in self.outcomes if o.status in statuses]

    @property
    def downloaded(self) -> List[DownloadOutcome]:
        return self.with_status(DownloadStatus.DOWNLOADED)

    @property
    def skipped(self) -> List[DownloadOutcome]:
        return self.with_status(DownloadStatus.SKIPPED)

    @property
    def failed(self) -> List[DownloadOutcome]:
        return self.with_status(DownloadStatus.NOT_FOUND, DownloadStatus.FAILED)
