import requests
from typing import List, Dict, Optional, Iterable
import json
import os
from pathlib import Path

from ...errors import NetworkError, NotFoundError, ParseError
from ..models import ManifestEntry, ResolvedFile


class CurseForgeAPI:
    """Handles requests to the CurseForge API"""

    BASE_URL = "https://api.curseforge.com"
    FILES_ENDPOINT = "/v1/mods/files"
    TIMEOUT = 30

    def __init__(self, api_key: str, session: Optional[requests.Session] = None):
        """
        Initialize CurseForge API

        Args:
            api_key: CurseForge API key, sent in the x-api-key header
            session: Optional requests session (a new one is created otherwise)
        """
        self.api_key = api_key
        self.session = session or requests.Session()
        self.headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "x-api-key": api_key
        }

    def get_files_batch(self, file_ids: List[int]) -> List[Dict]:
        """
        Get metadata for many files in a single request

        Args:
            file_ids: CurseForge file IDs

        Returns:
            Raw 'data' array of the response, in API order

        Raises:
            NetworkError: If the request fails or the status is not a success
            NotFoundError: If the response has no 'data' field
            ParseError: If the response is not JSON or 'data' is not a list
        """
        url = f"{self.BASE_URL}{self.FILES_ENDPOINT}"

        try:
            response = self.session.post(
                url,
                headers=self.headers,
                json={"fileIds": list(file_ids)},
                timeout=self.TIMEOUT
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status = getattr(e.response, "status_code", "N/A")
            raise NetworkError(f"File metadata request failed with HTTP status {status}") from e
        except requests.RequestException as e:
            raise NetworkError(f"File metadata request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(f"File metadata response is not valid JSON: {e}") from e

        if not isinstance(payload, dict) or payload.get("data") is None:
            raise NotFoundError("File metadata response has no 'data' field")

        data = payload["data"]
        if not isinstance(data, list):
            raise ParseError("File metadata response field 'data' is not a list")

        return data

    def resolve_files(self, entries: Iterable[ManifestEntry]) -> List[ResolvedFile]:
        """
        Resolves download metadata for every manifest entry

        Exactly one request is made however many entries there are
        (none for an empty manifest). The result follows the order of the API response.

        Args:
            entries: Manifest entries to resolve

        Returns:
            List of ResolvedFile
        """
        file_ids = [entry.file_id for entry in entries]
        # An empty manifest needs no request; the endpoint rejects empty id lists
        if not file_ids:
            return []

        return [ResolvedFile.from_api(item) for item in self.get_files_batch(file_ids)]


def resolve_files(entries: Iterable[ManifestEntry], api_key: str,
                  session: Optional[requests.Session] = None) -> List[ResolvedFile]:
    """Shortcut for CurseForgeAPI(api_key, session).resolve_files(entries)"""
    return CurseForgeAPI(api_key, session=session).resolve_files(entries)


class APIConfig:
    """Manages API key configuration"""

    ENV_VAR = "CURSEFORGE_API_KEY"

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else Path.home() / ".curseinstall"
        self.config_file = self.config_dir / "api_config.json"

    def save_curseforge_key(self, api_key: str) -> bool:
        """Saves the CurseForge API key"""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            config = self.load_config()
            config["curseforge_api_key"] = api_key

            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(config, f, indent=2)

            return True
        except OSError as e:
            print(f"Error saving API key: {e}")
            return False

    def get_curseforge_key(self, explicit_key: Optional[str] = None) -> Optional[str]:
        """
        Gets the CurseForge API key

        Lookup order: explicit value, CURSEFORGE_API_KEY environment
        variable, saved configuration file.

        Returns:
            The key, or None if none is configured
        """
        for candidate in (explicit_key, os.environ.get(self.ENV_VAR),
                          self.load_config().get("curseforge_api_key")):
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
        return None

    def load_config(self) -> Dict:
        """Loads the configuration"""
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    config = json.load(f)
                return config if isinstance(config, dict) else {}
            except (OSError, json.JSONDecodeError) as e:
                print(f"Error reading {self.config_file}: {e}")
                return {}
        return {}

    def clear_config(self) -> bool:
        """Clears the configuration"""
        try:
            if self.config_file.exists():
                self.config_file.unlink()
            return True
        except OSError as e:
            print(f"Error clearing configuration: {e}")
            return False
