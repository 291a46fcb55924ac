"""
curseinstall - CurseForge modpack installer
Downloads the files referenced by a modpack manifest and applies its overrides
"""

__version__ = "1.0.0"
