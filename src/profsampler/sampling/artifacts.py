"""
Artifact naming and persistence.

Artifacts live under `<output_dir>/<kind>/` and are named
`<kind>_<YYYY-MM-DD_HH-MM-SS>.prof`. Two captures within the same second get
a numeric suffix instead of replacing each other.
"""

import logging
from datetime import datetime
from pathlib import Path

from ..models.runtime import Artifact
from ..validation import DirectoryCreateError, WriteFailedError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
ARTIFACT_SUFFIX = ".prof"


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT)


def kind_directory(output_dir: Path, kind: str) -> Path:
    return Path(output_dir) / kind


def ensure_directory(path: Path) -> Path:
    """
    Create `path` and its parents if needed.

    Raises:
        DirectoryCreateError: If the directory cannot be created
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreateError(path, e) from e
    return path


def artifact_filename(kind: str, captured_at: datetime, sequence: int = 0) -> str:
    stem = f"{kind}_{format_timestamp(captured_at)}"
    if sequence:
        stem = f"{stem}_{sequence}"
    return stem + ARTIFACT_SUFFIX


def write_artifact(directory: Path, kind: str, captured_at: datetime, payload: bytes) -> Artifact:
    """
    Write one snapshot payload as a new artifact file.

    The file is created exclusively, so an existing artifact is never
    overwritten; on a name clash the next free suffix is used. A file whose
    write fails partway is removed again.

    Raises:
        WriteFailedError: If the file cannot be created or written
    """
    sequence = 0
    while True:
        path = directory / artifact_filename(kind, captured_at, sequence)
        try:
            f = open(path, "xb")
        except FileExistsError:
            sequence += 1
            continue
        except OSError as e:
            raise WriteFailedError(path, e) from e

        try:
            with f:
                f.write(payload)
        except OSError as e:
            _discard_partial(path)
            raise WriteFailedError(path, e) from e
        return Artifact(kind=kind, path=path, captured_at=captured_at, size_bytes=len(payload))


def _discard_partial(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove incomplete artifact {path}: {e}")
