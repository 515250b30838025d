"""Legacy key/value step outputs for older workflow consumers."""

from __future__ import annotations

import uuid
from pathlib import Path

from codehygiene.core.log import logger


class StepOutputs:
    """Appends outputs to a GitHub Actions style output file.

    Without a file the values are only logged at debug level, so
    local runs behave the same as CI runs.
    """

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path else None

    def set(self, name: str, value: str | int | bool) -> None:
        if isinstance(value, bool):
            value = "true" if value else "false"
        value = str(value)

        logger.debug(f"Output {name}", value=value[:200])
        if self.path is None:
            return

        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
            record = f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
        else:
            record = f"{name}={value}\n"

        with open(self.path, "a", encoding="utf-8") as handle:
            handle.write(record)
