from pathlib import Path
from typing import Optional, Callable, Dict, Union

import requests

from ...core.api import CurseForgeAPI
from ...core.archive import ModpackArchive
from ...core.download import ModDownloader
from ...errors import InstallError, PreconditionError
from ...utils.system_utils import validate_target_directory
from .overrides import copy_overrides


class ModpackManager:
    """Manages the installation of CurseForge modpack archives"""

    def __init__(
        self,
        api_key: str,
        max_workers: Optional[int] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Args:
            api_key: CurseForge API key used for metadata and downloads
            max_workers: Concurrent download limit (CPU based if None)
            session: Optional requests session for all HTTP traffic
        """
        self.api_key = api_key
        self.max_workers = max_workers
        self.session = session

    def install_modpack(
        self,
        modpack_file: Union[str, Path],
        target_dir: Union[str, Path],
        log_callback: Optional[Callable[[str, str], None]] = None
    ) -> Dict:
        """
        Installs a modpack archive into a folder

        Args:
            modpack_file: Path to the modpack .zip
            target_dir: Existing installation folder
            log_callback: Function receiving (message, log_type)

        Returns:
            Dict with:
            - success: bool
            - error / error_type: set when success is False
            - name, version: modpack display info
            - downloaded, skipped: number of files
            - failed: list of per-file failures
            - overrides_copied: number of override files written
        """
        def log(message: str, log_type: str = "normal"):
            if log_callback:
                log_callback(message, log_type)

        try:
            return self._install(Path(modpack_file), Path(target_dir), log)
        except InstallError as e:
            log(f"\nError during installation: {e}\n", "error")
            return {"success": False, "error": str(e), "error_type": type(e).__name__}

    def _install(self, modpack_file: Path, target_dir: Path, log: Callable[[str, str], None]) -> Dict:
        if not self.api_key:
            raise PreconditionError("No CurseForge API key configured")
        target = validate_target_directory(target_dir)

        log("\n" + "=" * 50 + "\n", "info")
        log("   MODPACK INSTALLATION (CurseForge)\n", "info")
        log("=" * 50 + "\n\n", "info")

        log("Step 1/4: Reading modpack...\n", "info")
        with ModpackArchive(modpack_file) as archive:
            manifest = archive.manifest

            log(f"Modpack: {manifest.name or modpack_file.stem}\n")
            if manifest.version:
                log(f"Version: {manifest.version}\n")
            if manifest.author:
                log(f"Author: {manifest.author}\n")
            if manifest.minecraft_version:
                log(f"Minecraft: {manifest.minecraft_version}\n")
            if manifest.mod_loader:
                log(f"Loader: {manifest.mod_loader}\n")
            log(f"Files: {len(manifest.files)}\n\n")

            log("Step 2/4: Resolving file metadata...\n", "info")
            api = CurseForgeAPI(self.api_key, session=self.session)
            resolved = api.resolve_files(manifest.files)
            log(f"Resolved {len(resolved)} files\n\n")

            log("Step 3/4: Downloading files...\n", "info")
            downloader = ModDownloader(
                api_key=self.api_key,
                max_workers=self.max_workers,
                session=self.session,
                log_callback=log
            )
            report = downloader.download_all(resolved, target)

            log(f"Downloaded {len(report.downloaded)}/{len(resolved)} files", "success")
            if report.skipped:
                log(f", {len(report.skipped)} already installed")
            if report.failed:
                log(f" ({len(report.failed)} failed)", "warning")
            log("\n\n")

            # Overrides go last so they win over downloaded files
            log("Step 4/4: Copying overrides...\n", "info")
            overrides_copied = copy_overrides(archive, manifest, target, log)

        log("\n✓ Installation complete\n", "success")

        return {
            "success": True,
            "name": manifest.name,
            "version": manifest.version,
            "install_path": str(target),
            "downloaded": len(report.downloaded),
            "skipped": len(report.skipped),
            "failed": [outcome.to_dict() for outcome in report.failed],
            "overrides_copied": overrides_copied
        }
