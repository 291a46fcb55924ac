"""API package - access to the CurseForge API"""

from .handlers import (
    CurseForgeAPI,
    APIConfig,
    resolve_files
)

__all__ = [
    "CurseForgeAPI",
    "APIConfig",
    "resolve_files"
]
