"""Command line for asmver.

Resolves package versions of compiled artifacts and prints them for the
calling build pipeline. Settings come from ASMVER_* environment variables;
flags given on the command line take precedence.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Optional

# External dependencies
import fire

from .artifact import ResolutionBatch, ResolutionOptions
from .config import AppConfig, get_app_config
from .errors import AsmverError, EmptyInputError
from .reader import PeArtifactReader
from .resolver import VersionResolver


OUTPUT_FORMATS = ("json", "text")


def _build_reader(cfg: AppConfig) -> PeArtifactReader:
    return PeArtifactReader(marker_type=cfg.marker_type, marker_fields=cfg.marker_fields)


def _build_resolver(cfg: AppConfig) -> VersionResolver:
    return VersionResolver(reader=_build_reader(cfg))


def _render_batch(batch: ResolutionBatch, output: str) -> str:
    if output == "json":
        return batch.model_dump_json(indent=2)
    return "\n".join(f"{r.file_path}\t{r.version}" for r in batch.results)


class CLI:

    def __init__(self):
        """asmver command line entrypoint."""
        pass


    def version(self) -> str:
        """Print installed asmver package version."""
        try:
            from importlib.metadata import version
            return version("asmver")
        except Exception:
            return "0+unknown"


    def resolve(
        self,
        *paths: str,
        prefer_product_version: Optional[bool] = None,
        prefer_file_version: Optional[bool] = None,
        allow_partial: Optional[bool] = None,
        output: Optional[str] = None,
    ) -> None:
        """Resolve the package version of each artifact path.

        - prefer_product_version: always use the product version
        - prefer_file_version: use the file version unless the product version is preferred
        - allow_partial: exit 0 even if some artifacts could not be read
        - output: json|text
        """

        cfg = get_app_config()
        if not paths:
            raise EmptyInputError("at least one artifact path is required")

        output = (output or cfg.output).lower().strip()
        if output not in OUTPUT_FORMATS:
            raise ValueError(f"unsupported output format: {output}")

        overrides = {
            "prefer_product_version": prefer_product_version,
            "prefer_file_version": prefer_file_version,
        }
        options = ResolutionOptions.from_config(cfg).model_copy(
            update={k: v for k, v in overrides.items() if v is not None}
        )
        allow_partial = cfg.allow_partial if allow_partial is None else allow_partial

        batch = _build_resolver(cfg).resolve_all([str(p) for p in paths], options)
        rendered = _render_batch(batch, output)
        if rendered:
            print(rendered)

        if not batch.ok:
            if output == "text":
                for f in batch.failures:
                    print(f"{f.file_path}: {f.kind}: {f.error}", file=sys.stderr)
            if not allow_partial:
                raise SystemExit(1)


    def inspect(self, path: str) -> None:
        """Print the version metadata read from an artifact."""

        cfg = get_app_config()
        metadata = _build_reader(cfg).read_metadata(str(path))
        print(metadata.model_dump_json(indent=2))


    def probe(self, path: str) -> None:
        """Print the version carried by the embedded version marker, if any."""

        cfg = get_app_config()
        version = _build_reader(cfg).probe_marker(str(path))
        if version:
            print(version)


    def config(self) -> None:
        """Print the effective configuration."""

        print(json.dumps(get_app_config().model_dump(), indent=2))


def main():
    os.environ["PAGER"] = "cat"
    cfg = get_app_config()
    logging.basicConfig(
        level=cfg.log_level.upper(),
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
    )
    try:
        fire.Fire(CLI)
    except AsmverError as e:
        logging.getLogger(__name__).error("%s", e)
        raise SystemExit(1) from None
