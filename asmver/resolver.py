"""Package version resolution for compiled artifacts.

Precedence, first match wins:
1) embedded version-generation marker
2) product version, when explicitly preferred
3) file version, when explicitly preferred or the product version is not semver
4) assembly version, when product and file version are identical
5) product version
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from asmver.artifact import (
    ArtifactMetadata,
    ResolutionBatch,
    ResolutionFailure,
    ResolutionOptions,
    ResolvedVersion,
    VersionSource,
)
from asmver.errors import EmptyInputError, EmptyVersionError, MarkerProbeError, ResolutionError
from asmver.reader import ArtifactReader, PeArtifactReader
from asmver.semver import is_semantic_version


logger = logging.getLogger(__name__)


class VersionResolver:

    def __init__(self, reader: Optional[ArtifactReader] = None):
        self.reader = reader or PeArtifactReader()


    def _probe_marker(self, file_path: str) -> Optional[str]:
        try:
            version = self.reader.probe_marker(file_path)
        except MarkerProbeError as e:
            logger.debug("Could not load version marker from %s", file_path)
            logger.debug("%s", e, exc_info=True)
            return None
        if not version:
            logger.debug("No version marker found in %s", file_path)
            return None
        return version


    def _result(self, file_path: str, version: Optional[str], source: VersionSource, reason: str) -> ResolvedVersion:
        if not version:
            raise EmptyVersionError(f"{file_path}: {source.value} is empty ({reason})", file_path)
        logger.info("%s: %s", file_path, reason)
        return ResolvedVersion(file_path=file_path, version=version, source=source, reason=reason)


    def _select(self, metadata: ArtifactMetadata, options: ResolutionOptions) -> ResolvedVersion:
        path = metadata.file_path
        file_version = metadata.file_version
        product_version = metadata.product_version

        if options.prefer_product_version:
            return self._result(
                path, product_version, VersionSource.PRODUCT_VERSION,
                f"using the product version because prefer_product_version is set: {product_version}",
            )

        if options.prefer_file_version:
            return self._result(
                path, file_version, VersionSource.FILE_VERSION,
                f"using the file version because prefer_file_version is set: {file_version}",
            )

        if not is_semantic_version(product_version):
            return self._result(
                path, file_version, VersionSource.FILE_VERSION,
                f"using the file version because the product version ({product_version}) "
                f"is not a valid semantic version: {file_version}",
            )

        # Product version defaults to the file version, so equal values mean it was never set deliberately
        if file_version == product_version:
            if metadata.assembly_version is None:
                return self._result(
                    path, product_version, VersionSource.PRODUCT_VERSION,
                    f"using the product version because it matches the file version "
                    f"and the artifact has no assembly identity: {product_version}",
                )
            return self._result(
                path, metadata.assembly_version, VersionSource.ASSEMBLY_VERSION,
                f"using the assembly version because the product version matches the file version: "
                f"{metadata.assembly_version}",
            )

        return self._result(
            path, product_version, VersionSource.PRODUCT_VERSION,
            f"using the product version because it differs from the file version ({file_version}): "
            f"{product_version}",
        )


    def resolve(self, file_path: str, options: Optional[ResolutionOptions] = None) -> ResolvedVersion:
        """Resolve the package version of a single artifact.

        Raises MetadataUnreadableError when the native version resource cannot be read.
        """
        if options is None:
            options = ResolutionOptions()

        with self.reader.opened(file_path):
            marker_version = self._probe_marker(file_path)
            if marker_version:
                return self._result(
                    file_path, marker_version, VersionSource.MARKER,
                    f"found version marker, using version: {marker_version}",
                )

            metadata = self.reader.read_metadata(file_path)
        return self._select(metadata, options)


    def resolve_all(self, file_paths: Sequence[str], options: Optional[ResolutionOptions] = None) -> ResolutionBatch:
        """Resolve every artifact independently; per-artifact failures are collected, not raised."""
        if not file_paths:
            raise EmptyInputError("no artifact files supplied")

        if options is None:
            options = ResolutionOptions()
        batch = ResolutionBatch()
        for file_path in file_paths:
            logger.info("Get version info from artifact: %s", file_path)
            try:
                batch.results.append(self.resolve(file_path, options))
            except ResolutionError as e:
                logger.error("Failed to resolve version of %s: %s", file_path, e)
                batch.failures.append(ResolutionFailure.from_exception(file_path, e))
        return batch


def resolve(file_path: str, options: Optional[ResolutionOptions] = None) -> ResolvedVersion:
    return VersionResolver().resolve(file_path, options)
