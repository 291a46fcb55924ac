"""
curseinstall - CurseForge modpack installer
Installs the mods, resource packs and overrides of a modpack zip into a folder
"""

import sys

from curseinstall.cli import main


if __name__ == "__main__":
    sys.exit(main())
