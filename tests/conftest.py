import os
from typing import Dict, Optional, Union

import pytest

import asmver.config
from asmver.artifact import ArtifactMetadata
from asmver.errors import MetadataUnreadableError
from asmver.reader import ArtifactReader


class FakeReader(ArtifactReader):
    """In-memory reader keyed by artifact path"""

    def __init__(
        self,
        metadata: Optional[Dict[str, ArtifactMetadata]] = None,
        markers: Optional[Dict[str, Union[str, Exception, None]]] = None,
    ):
        self.metadata = metadata or {}
        self.markers = markers or {}
        self.probe_calls = []
        self.read_calls = []

    def read_metadata(self, file_path: str) -> ArtifactMetadata:
        self.read_calls.append(file_path)
        if file_path not in self.metadata:
            raise MetadataUnreadableError(f"cannot read version resource of {file_path}", file_path)
        return self.metadata[file_path]

    def probe_marker(self, file_path: str) -> Optional[str]:
        self.probe_calls.append(file_path)
        marker = self.markers.get(file_path)
        if isinstance(marker, Exception):
            raise marker
        return marker


def make_metadata(
    file_path: str = "app.dll",
    file_version: str = "1.2.3.4",
    product_version: Optional[str] = None,
    assembly_version: Optional[str] = "1.2.0.0",
) -> ArtifactMetadata:
    return ArtifactMetadata(
        file_path=file_path,
        file_version=file_version,
        product_version=file_version if product_version is None else product_version,
        assembly_version=assembly_version,
    )


@pytest.fixture
def fake_reader_cls():
    return FakeReader


@pytest.fixture
def metadata_factory():
    return make_metadata


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Drop ASMVER_* variables and the cached config between tests"""
    for key in list(os.environ):
        if key.upper().startswith("ASMVER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(asmver.config, "_APP_CONFIG", None)
    yield
