from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from asmver.config import AppConfig


class VersionSource(str, Enum):
    MARKER = "marker"
    PRODUCT_VERSION = "product_version"
    FILE_VERSION = "file_version"
    ASSEMBLY_VERSION = "assembly_version"


class ArtifactMetadata(BaseModel):
    """
    Version fields read from a binary artifact.

    file_version and product_version come from the native version resource,
    assembly_version from the .NET assembly identity (None for native binaries).
    """
    model_config = ConfigDict(frozen=True)

    file_path: str
    file_version: str
    product_version: str
    assembly_version: Optional[str] = None


class ResolutionOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    prefer_product_version: bool = False
    prefer_file_version: bool = False


    @classmethod
    def from_config(cls, config: AppConfig) -> ResolutionOptions:
        return cls(
            prefer_product_version=config.prefer_product_version,
            prefer_file_version=config.prefer_file_version,
        )


class ResolvedVersion(BaseModel):
    file_path: str
    version: str = Field(min_length=1)
    source: VersionSource
    reason: str = ""


class ResolutionFailure(BaseModel):
    file_path: str
    error: str
    kind: str = "ResolutionError"


    @classmethod
    def from_exception(cls, file_path: str, exc: Exception) -> ResolutionFailure:
        return cls(file_path=file_path, error=str(exc), kind=type(exc).__name__)


class ResolutionBatch(BaseModel):
    results: List[ResolvedVersion] = Field(default_factory=list)
    failures: List[ResolutionFailure] = Field(default_factory=list)


    @property
    def ok(self) -> bool:
        return not self.failures


    def find(self, file_path: str) -> Optional[ResolvedVersion]:
        for r in self.results:
            if r.file_path == file_path:
                return r
        return None


    def find_failure(self, file_path: str) -> Optional[ResolutionFailure]:
        for f in self.failures:
            if f.file_path == file_path:
                return f
        return None


    def versions(self) -> Dict[str, str]:
        return {r.file_path: r.version for r in self.results}
