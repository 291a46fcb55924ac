import requests
import os
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Callable, List, Union
from urllib.parse import urlparse

from ..models import ResolvedFile, DownloadOutcome, DownloadReport, DownloadStatus
from ..api.handlers import CurseForgeAPI
from ...utils.path_utils import sanitize_filename
from ...utils.system_utils import validate_target_directory, get_download_workers

LogCallback = Callable[[str, str], None]


class ModDownloader:
    """Downloads resolved modpack files into an installation folder"""

    MODS_FOLDER = "mods"
    RESOURCEPACKS_FOLDER = "resourcepacks"
    ZIP_EXTENSIONS = (".zip",)
    WORKERS_PER_CPU = 2
    MAX_RETRIES = 3
    RETRY_WAIT = 2
    TIMEOUT = 60
    CHUNK_SIZE = 1024 * 1024  # 1 MB

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_workers: Optional[int] = None,
        session: Optional[requests.Session] = None,
        log_callback: Optional[LogCallback] = None
    ):
        """
        Args:
            api_key: CurseForge API key, only sent to the API host
            max_workers: Concurrent download limit (CPU based if None)
            session: Optional requests session shared by the workers
            log_callback: Function receiving (message, log_type)
        """
        self.api_key = api_key
        self.max_workers = max_workers or get_download_workers(self.WORKERS_PER_CPU)
        self.log_callback = log_callback
        # Create persistent session for better performance
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'curseinstall/1.0',
            'Accept-Encoding': 'gzip, deflate'
        })

    def _log(self, message: str, log_type: str = "normal"):
        if self.log_callback:
            self.log_callback(message, log_type)

    def destination_for(self, file: ResolvedFile, target_dir: Path) -> Path:
        """
        Gets the path a resolved file is saved to

        Zip files are resource packs, everything else goes to mods.
        Illegal characters are removed from the name, not replaced.
        """
        if file.file_name.lower().endswith(self.ZIP_EXTENSIONS):
            folder = self.RESOURCEPACKS_FOLDER
        else:
            folder = self.MODS_FOLDER
        return target_dir / folder / sanitize_filename(file.file_name)

    def _request_headers(self, url: str) -> dict:
        # The key is never sent to the CDN
        if self.api_key and urlparse(url).netloc == urlparse(CurseForgeAPI.BASE_URL).netloc:
            return {"x-api-key": self.api_key}
        return {}

    def download_file(self, file: ResolvedFile, target_dir: Path) -> DownloadOutcome:
        """
        Downloads a single file, never raising for per-file problems

        Args:
            file: Resolved file metadata
            target_dir: Installation folder (already validated)

        Returns:
            DownloadOutcome describing what happened
        """
        destination = self.destination_for(file, target_dir)

        if sanitize_filename(file.file_name).strip(".") == "":
            return self._failed(file, None, DownloadStatus.FAILED, "file name is empty after sanitizing")

        try:
            # exist_ok makes this safe when several workers create the folder
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return self._failed(file, destination, DownloadStatus.FAILED, f"could not create folder: {e}")

        if not file.download_url:
            outcome = self._failed(file, destination, DownloadStatus.NOT_FOUND, "no download link")
            if file.manual_download_page:
                self._log(f"    → {file.manual_download_page}\n", "warning")
            return outcome

        if destination.exists():
            return DownloadOutcome(file, DownloadStatus.SKIPPED, destination)

        part_file = destination.with_name(destination.name + ".part")

        for attempt in range(self.MAX_RETRIES):
            try:
                if attempt > 0:
                    time.sleep(self.RETRY_WAIT)

                with self.session.get(file.download_url, stream=True, timeout=self.TIMEOUT,
                                      allow_redirects=True,
                                      headers=self._request_headers(file.download_url)) as response:
                    response.raise_for_status()

                    with open(part_file, 'wb') as f:
                        for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                            if chunk:
                                f.write(chunk)

                os.replace(part_file, destination)
                return DownloadOutcome(file, DownloadStatus.DOWNLOADED, destination)

            except (requests.Timeout, requests.ConnectionError) as e:
                self._remove_quietly(part_file)
                if attempt < self.MAX_RETRIES - 1:
                    self._log(f"  Retrying {file.display_name} "
                              f"(attempt {attempt + 2}/{self.MAX_RETRIES})...\n", "info")
                    continue
                return self._failed(file, destination, DownloadStatus.FAILED, f"network error: {e}")

            except requests.HTTPError as e:
                # Status errors are not retried
                self._remove_quietly(part_file)
                status = getattr(e.response, "status_code", "N/A")
                return self._failed(file, destination, DownloadStatus.FAILED, f"HTTP status {status}")

            except requests.RequestException as e:
                self._remove_quietly(part_file)
                return self._failed(file, destination, DownloadStatus.FAILED, f"request failed: {e}")

            except OSError as e:
                self._remove_quietly(part_file)
                return self._failed(file, destination, DownloadStatus.FAILED, f"write error: {e}")

        return self._failed(file, destination, DownloadStatus.FAILED, "retries exhausted")

    def _failed(self, file: ResolvedFile, destination: Optional[Path],
                status: DownloadStatus, reason: str) -> DownloadOutcome:
        self._log(f"  ✗ {file.display_name}: {reason}\n", "warning")
        return DownloadOutcome(file, status, destination, reason)

    @staticmethod
    def _remove_quietly(path: Path):
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            print(f"Could not remove partial file {path}: {e}")

    def download_all(self, files: List[ResolvedFile], target_dir: Union[str, Path]) -> DownloadReport:
        """
        Downloads every resolved file with a bounded worker pool

        Individual failures are recorded in the report and never stop
        the other downloads.

        Args:
            files: Resolved files, in API order
            target_dir: Installation folder

        Returns:
            DownloadReport with one outcome per file, in input order

        Raises:
            PreconditionError: If target_dir is not an existing directory
        """
        target = validate_target_directory(target_dir)

        total_files = len(files)
        if total_files == 0:
            return DownloadReport()

        self._log(f"Downloading {total_files} files "
                  f"({min(self.max_workers, total_files)} parallel)...\n", "info")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self.download_file, file, target) for file in files]
            outcomes = []
            for file, future in zip(files, futures):
                try:
                    outcomes.append(future.result())
                except Exception as e:
                    outcomes.append(self._failed(file, None, DownloadStatus.FAILED,
                                                 f"unexpected error: {e} ({type(e).__name__})"))

        return DownloadReport(outcomes)
