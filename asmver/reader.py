"""Version metadata readers for PE binaries and .NET assemblies."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import dnfile

from asmver.artifact import ArtifactMetadata
from asmver.config import DEFAULT_MARKER_FIELDS, DEFAULT_MARKER_TYPE
from asmver.errors import MarkerProbeError, MetadataUnreadableError


logger = logging.getLogger(__name__)

# ECMA-335 II.23.1.16 element types used by the Constant table
ELEMENT_TYPE_STRING = 0x0E
ELEMENT_TYPE_CLASS = 0x12


class ArtifactReader(ABC):

    @abstractmethod
    def read_metadata(self, file_path: str) -> ArtifactMetadata:
        """Read the native version fields of the artifact. Raises MetadataUnreadableError."""
        raise NotImplementedError


    @abstractmethod
    def probe_marker(self, file_path: str) -> Optional[str]:
        """Return the embedded marker version, or None when the artifact carries none."""
        raise NotImplementedError


    @contextmanager
    def opened(self, file_path: str) -> Iterator[None]:
        """Keep file_path loaded while the block runs, so both reads share one parse."""
        yield


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return str(value).strip("\x00").strip()


def _blob(value: Any) -> bytes:
    # dnfile returns heap items wrapping the raw bytes in newer releases
    raw = getattr(value, "value", value)
    return bytes(raw or b"")


def format_fixed_version(ms: int, ls: int) -> str:
    return f"{ms >> 16}.{ms & 0xFFFF}.{ls >> 16}.{ls & 0xFFFF}"


def string_file_info(pe: Any) -> Dict[str, str]:
    """Collect the StringFileInfo entries of the version resource, first table wins."""
    entries: Dict[str, str] = {}
    for file_info in getattr(pe, "FileInfo", None) or []:
        for info in file_info:
            if _text(getattr(info, "Key", b"")) != "StringFileInfo":
                continue
            for table in getattr(info, "StringTable", None) or []:
                for key, value in table.entries.items():
                    entries.setdefault(_text(key), _text(value))
    return entries


def fixed_file_info(pe: Any) -> Tuple[Optional[str], Optional[str]]:
    """Return (file_version, product_version) from VS_FIXEDFILEINFO, if present."""
    fixed = getattr(pe, "VS_FIXEDFILEINFO", None)
    if not fixed:
        return None, None
    info = fixed[0]
    return (
        format_fixed_version(info.FileVersionMS, info.FileVersionLS),
        format_fixed_version(info.ProductVersionMS, info.ProductVersionLS),
    )


def _metadata_rows(pe: Any, table_name: str) -> List[Any]:
    net = getattr(pe, "net", None)
    mdtables = getattr(net, "mdtables", None) if net is not None else None
    table = getattr(mdtables, table_name, None) if mdtables is not None else None
    if table is None:
        return []
    return list(getattr(table, "rows", None) or [])


def assembly_version(pe: Any) -> Optional[str]:
    """Dotted version of the .NET assembly identity, None for native binaries."""
    rows = _metadata_rows(pe, "Assembly")
    if not rows:
        return None
    row = rows[0]
    return f"{row.MajorVersion}.{row.MinorVersion}.{row.BuildNumber}.{row.RevisionNumber}"


def _constant_string(constants: Sequence[Any], field: Any) -> Optional[str]:
    for constant in constants:
        if getattr(constant.Parent, "row", None) is not field:
            continue
        if constant.Type == ELEMENT_TYPE_CLASS:
            # null literal
            return None
        if constant.Type != ELEMENT_TYPE_STRING:
            raise MarkerProbeError(f"marker field holds a non-string constant (type 0x{constant.Type:02x})")
        return _blob(constant.Value).decode("utf-16-le")
    return None


def find_marker_version(pe: Any, type_name: str, field_names: Sequence[str]) -> Optional[str]:
    """
    Look up the version-generation marker type and return the first non-empty
    string literal among field_names.
    """
    marker = None
    for typedef in _metadata_rows(pe, "TypeDef"):
        if _text(typedef.TypeName) == type_name:
            marker = typedef
            break
    if marker is None:
        return None

    fields: Dict[str, Any] = {}
    for ref in getattr(marker, "FieldList", None) or []:
        field = ref.row
        if field is not None:
            fields[_text(field.Name)] = field

    constants = _metadata_rows(pe, "Constant")
    for name in field_names:
        field = fields.get(name)
        if field is None:
            continue
        value = _constant_string(constants, field)
        if value:
            return value
    return None


class PeArtifactReader(ArtifactReader):
    """Reads PE version resources with pefile and .NET metadata with dnfile."""

    def __init__(
        self,
        marker_type: str = DEFAULT_MARKER_TYPE,
        marker_fields: Optional[Sequence[str]] = None,
        loader: Optional[Callable[[str], Any]] = None,
    ):
        self.marker_type = marker_type
        self.marker_fields = tuple(marker_fields or DEFAULT_MARKER_FIELDS)
        self._loader = loader or dnfile.dnPE
        self._local = threading.local()


    def _opened(self) -> Dict[str, Any]:
        if not hasattr(self._local, "opened"):
            self._local.opened = {}
        return self._local.opened


    @contextmanager
    def opened(self, file_path: str) -> Iterator[None]:
        opened = self._opened()
        if file_path in opened:
            yield
            return
        try:
            pe = self._loader(file_path)
        except Exception as e:
            # each reader method reports the load failure in its own error type
            pe = e
        opened[file_path] = pe
        try:
            yield
        finally:
            del opened[file_path]
            if not isinstance(pe, Exception):
                pe.close()


    def _acquire(self, file_path: str) -> Tuple[Any, bool]:
        """Return (pe, owned); owned images must be closed by the caller."""
        opened = self._opened()
        if file_path in opened:
            pe = opened[file_path]
            if isinstance(pe, Exception):
                raise pe
            return pe, False
        return self._loader(file_path), True


    def read_metadata(self, file_path: str) -> ArtifactMetadata:
        try:
            pe, owned = self._acquire(file_path)
        except Exception as e:
            raise MetadataUnreadableError(f"unable to read version resource of {file_path}: {e}", file_path) from e

        try:
            strings = string_file_info(pe)
            fixed_file, fixed_product = fixed_file_info(pe)
            if not strings and fixed_file is None:
                raise MetadataUnreadableError(f"{file_path} has no version resource", file_path)

            file_version = strings.get("FileVersion") or fixed_file
            if not file_version:
                raise MetadataUnreadableError(f"{file_path} has no file version", file_path)
            product_version = strings.get("ProductVersion") or fixed_product or file_version

            metadata = ArtifactMetadata(
                file_path=file_path,
                file_version=file_version,
                product_version=product_version,
                assembly_version=assembly_version(pe),
            )
        except MetadataUnreadableError:
            raise
        except Exception as e:
            raise MetadataUnreadableError(f"malformed version metadata in {file_path}: {e}", file_path) from e
        finally:
            if owned:
                pe.close()

        logger.debug(
            "Read version metadata from %s: file=%s product=%s assembly=%s",
            file_path, metadata.file_version, metadata.product_version, metadata.assembly_version,
        )
        return metadata


    def probe_marker(self, file_path: str) -> Optional[str]:
        try:
            pe, owned = self._acquire(file_path)
        except Exception as e:
            raise MarkerProbeError(f"unable to load {file_path}: {e}") from e

        try:
            return find_marker_version(pe, self.marker_type, self.marker_fields)
        except MarkerProbeError:
            raise
        except Exception as e:
            raise MarkerProbeError(f"malformed {self.marker_type} in {file_path}: {e}") from e
        finally:
            if owned:
                pe.close()
