"""Artifact store: the file-system hand-off between runners and the summary.

Each runner owns exactly one JSON file under the artifact directory.
The summary step only reads. Nothing else couples the two sides, so
they can run in different jobs as long as the directory is carried
across.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from codehygiene.core.log import logger
from codehygiene.core.result import (
    ALL_CHECKS,
    SCHEMA_VERSION,
    TRUST_STATUS,
    CheckResult,
    CheckTag,
    check_result_adapter,
)

ARTIFACT_FILES: dict[CheckTag, str] = {
    "format": "format-result.json",
    "lint": "lint-result.json",
    "test": "test-result.json",
    "stats": "stats-result.json",
}


class ArtifactError(RuntimeError):
    """An artifact could not be written."""


class ArtifactStore:
    """Reads and writes one CheckResult document per check."""

    def __init__(self, directory: Path, overwrite: bool = True):
        """
        Args:
            directory: Artifact directory (created on first write)
            overwrite: Allow replacing an existing artifact. With
                False a second write for the same check raises.
        """
        self.directory = Path(directory)
        self.overwrite = overwrite

    def path_for(self, check: CheckTag) -> Path:
        return self.directory / ARTIFACT_FILES[check]

    def write(self, result: CheckResult) -> Path:
        """Serialize a result to its well-known path.

        The document is written to a temporary file in the same
        directory and renamed into place, so a reader never sees a
        partial file.

        Raises:
            ArtifactError: If the file exists and overwrite is off,
                or the file system refuses the write
        """
        path = self.path_for(result.check)
        if path.exists() and not self.overwrite:
            raise ArtifactError(f"Artifact already written: {path}")

        payload = result.model_dump_json(by_alias=True, indent=2)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix=f".{path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.write("\n")
            os.replace(tmp_name, path)
        except OSError as e:
            raise ArtifactError(f"Could not write {path}: {e}") from e

        logger.info(f"Wrote artifact: {path}", check=result.check)
        return path

    def read(self, check: CheckTag) -> CheckResult | None:
        """Load one artifact.

        Returns None when the file is missing, is not JSON, fails
        validation, or belongs to a different check. Absence is
        data for the aggregator, never an exception. The recorded
        status is kept even when the details disagree with it; a
        missing count must not turn a failure into no data.
        """
        path = self.path_for(check)
        if not path.is_file():
            logger.warn(f"No {check} artifact at {path}")
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warn(f"Could not read {check} artifact: {e}",
                        path=str(path))
            return None

        if not isinstance(data, dict):
            logger.warn(f"Malformed {check} artifact: not an object",
                        path=str(path))
            return None

        version = data.get("schemaVersion")
        if isinstance(version, int) and version > SCHEMA_VERSION:
            logger.warn(
                f"{check} artifact uses schema {version}; "
                f"reading as schema {SCHEMA_VERSION}",
                path=str(path),
            )

        try:
            result = check_result_adapter.validate_python(
                data, context={TRUST_STATUS: True}
            )
        except ValidationError as e:
            logger.warn(
                f"Invalid {check} artifact: "
                f"{e.error_count()} validation error(s)",
                path=str(path),
            )
            return None

        if result.check != check:
            logger.warn(
                f"Artifact {path.name} holds a {result.check} result",
                path=str(path),
            )
            return None

        mismatch = result.status_mismatch()
        if mismatch:
            logger.warn(f"{check} artifact: {mismatch}; keeping its status",
                        path=str(path))
        return result

    def read_all(self) -> dict[CheckTag, CheckResult]:
        """Load every artifact that exists, keyed by check."""
        results = {}
        for check in ALL_CHECKS:
            result = self.read(check)
            if result is not None:
                results[check] = result
        return results
