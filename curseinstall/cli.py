"""
Command line interface for installing a CurseForge modpack zip into a folder
"""

import argparse
from typing import List, Optional

from dotenv import load_dotenv

from . import __version__
from .core.api import APIConfig
from .managers.modpack import ModpackManager
from .utils.logger import ConsoleLogger


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Install a CurseForge modpack zip into a folder.")
    parser.add_argument("target", help="Existing folder to install into")
    parser.add_argument("modpack", help="Path to the modpack .zip file")
    parser.add_argument("--api-key", dest="api_key", default=None,
                        help="CurseForge API key (defaults to $CURSEFORGE_API_KEY or the saved key)")
    parser.add_argument("--workers", type=int, default=None,
                        help="Maximum number of parallel downloads (default: 2 per CPU)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point"""
    load_dotenv()
    args = parse_args(argv)
    logger = ConsoleLogger()

    api_key = APIConfig().get_curseforge_key(args.api_key)
    if not api_key:
        logger.add_log(f"Error: no API key. Set {APIConfig.ENV_VAR} or pass --api-key.\n", "error")
        return 1

    if args.workers is not None and args.workers < 1:
        logger.add_log("Error: --workers must be at least 1\n", "error")
        return 1

    manager = ModpackManager(api_key, max_workers=args.workers)
    result = manager.install_modpack(args.modpack, args.target, log_callback=logger.add_log)

    if not result["success"]:
        return 1

    for failure in result["failed"]:
        logger.add_log(f"  • {failure['display_name']}: {failure['reason']}\n", "warning")
    return 0
