"""Module version resolution.

Priority:
1. the most recent source-control tag (`v1.2.3` → 1.2.3.0)
2. `ModuleVersion` in the source manifest
3. DEFAULT_VERSION (1.0.0.0)

A version found in 1 or 2 is incremented according to the release type; the
default is returned as-is. Resolution never fails: every miss is logged at
debug level and falls through to the next source.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from modbuild.core.version import DEFAULT_VERSION, ReleaseType, SemanticVersion, parse_version
from modbuild.services.manifest import ManifestStore

__all__ = ["MANIFEST_VERSION_FIELD", "SourceControl", "VersionResolver"]

logger = logging.getLogger(__name__)

MANIFEST_VERSION_FIELD = "ModuleVersion"


class SourceControl(Protocol):
    def latest_tag(self) -> str | None: ...


class VersionResolver:
    def __init__(self, source_control: SourceControl, manifests: ManifestStore) -> None:
        self._source_control = source_control
        self._manifests = manifests

    def resolve(
        self, release_type: ReleaseType, source_dir: Path, manifest_name: str
    ) -> SemanticVersion:
        base = self._from_tag()
        if base is None:
            base = self._from_manifest(source_dir / manifest_name)
        if base is None:
            logger.debug("version resolution degraded: using default %s", DEFAULT_VERSION)
            return DEFAULT_VERSION

        version = base.increment(release_type)
        logger.debug("resolved version %s -> %s (%s)", base, version, release_type)
        return version

    def _from_tag(self) -> SemanticVersion | None:
        try:
            tag = self._source_control.latest_tag()
        except Exception as e:  # noqa: BLE001
            logger.debug("version resolution degraded: tag query failed: %s", e)
            return None
        if tag is None:
            logger.debug("version resolution degraded: no source-control tag")
            return None
        version = parse_version(tag)
        if version is None:
            logger.debug("version resolution degraded: tag %r is not a version", tag)
        return version

    def _from_manifest(self, path: Path) -> SemanticVersion | None:
        try:
            raw = self._manifests.read_field(path, MANIFEST_VERSION_FIELD)
        except Exception as e:  # noqa: BLE001
            logger.debug("version resolution degraded: cannot read %s: %s", path, e)
            return None
        if raw is None:
            logger.debug("version resolution degraded: no %s in %s", MANIFEST_VERSION_FIELD, path)
            return None
        version = parse_version(raw)
        if version is None:
            logger.debug("version resolution degraded: malformed %s %r", MANIFEST_VERSION_FIELD, raw)
        return version
