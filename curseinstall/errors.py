"""Errors raised by the installation pipeline"""


class InstallError(Exception):
    """Base class for conditions that abort an installation"""


class NotFoundError(InstallError):
    """A required file, archive entry or response payload is missing"""


class ParseError(InstallError):
    """The archive, manifest or API response could not be decoded"""


class PathTraversalError(InstallError):
    """An archive entry path points outside the extraction root"""

    def __init__(self, entry_name: str):
        super().__init__(f"Unsafe path in archive: {entry_name!r}")
        self.entry_name = entry_name


class PreconditionError(InstallError):
    """The installation cannot start (bad target, missing credential)"""


class NetworkError(InstallError):
    """A request to the remote API failed"""


class StorageError(InstallError):
    """Writing to the local filesystem failed"""
