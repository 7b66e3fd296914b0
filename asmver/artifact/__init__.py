from ._base import (
    ArtifactMetadata,
    ResolutionOptions,
    VersionSource,
    ResolvedVersion,
    ResolutionFailure,
    ResolutionBatch,
)


__all__ = [
    "ArtifactMetadata",
    "ResolutionOptions",
    "VersionSource",
    "ResolvedVersion",
    "ResolutionFailure",
    "ResolutionBatch",
]
