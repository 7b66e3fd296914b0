from __future__ import annotations

from typing import Optional


class AsmverError(Exception):
    pass


class ResolutionError(AsmverError):
    """Resolution of a single artifact failed."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message)
        self.file_path = file_path


class MetadataUnreadableError(ResolutionError):
    pass


class EmptyVersionError(ResolutionError):
    pass


class MarkerProbeError(AsmverError):
    pass


class EmptyInputError(AsmverError, ValueError):
    pass
