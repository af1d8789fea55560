"""
Unit tests for artifact naming and writing.
"""

import subprocess
import sys
import textwrap
from datetime import datetime
from pathlib import Path

import pytest

from profsampler.sampling import artifacts
from profsampler.sampling.artifacts import (
    artifact_filename,
    ensure_directory,
    format_timestamp,
    kind_directory,
    write_artifact,
)
from profsampler.validation import DirectoryCreateError, WriteFailedError

MOMENT = datetime(2024, 3, 9, 7, 5, 1)


@pytest.mark.unit
class TestNaming:
    """Artifact file and directory names."""

    def test_timestamp_format(self):
        assert format_timestamp(MOMENT) == "2024-03-09_07-05-01"

    def test_filename(self):
        assert artifact_filename("heap", MOMENT) == "heap_2024-03-09_07-05-01.prof"

    def test_filename_with_sequence(self):
        assert artifact_filename("cpu", MOMENT, 2) == "cpu_2024-03-09_07-05-01_2.prof"

    def test_kind_directory(self, temp_dir):
        assert kind_directory(temp_dir, "cpu") == temp_dir / "cpu"


@pytest.mark.unit
class TestEnsureDirectory:
    """Directory creation."""

    def test_creates_nested_directories(self, temp_dir):
        target = temp_dir / "a" / "b" / "heap"
        assert ensure_directory(target) == target
        assert target.is_dir()

    def test_existing_directory_is_fine(self, temp_dir):
        ensure_directory(temp_dir)
        assert temp_dir.is_dir()

    def test_path_below_a_file_fails(self, temp_dir):
        blocker = temp_dir / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(DirectoryCreateError) as exc_info:
            ensure_directory(blocker / "heap")

        assert exc_info.value.path == blocker / "heap"


@pytest.mark.unit
class TestWriteArtifact:
    """Writing payloads to disk."""

    def test_writes_payload(self, temp_dir):
        artifact = write_artifact(temp_dir, "heap", MOMENT, b"payload")

        assert artifact.path == temp_dir / "heap_2024-03-09_07-05-01.prof"
        assert artifact.path.read_bytes() == b"payload"
        assert artifact.size_bytes == 7
        assert artifact.kind == "heap"
        assert artifact.captured_at == MOMENT

    def test_same_second_does_not_overwrite(self, temp_dir):
        first = write_artifact(temp_dir, "heap", MOMENT, b"one")
        second = write_artifact(temp_dir, "heap", MOMENT, b"two")
        third = write_artifact(temp_dir, "heap", MOMENT, b"three")

        assert first.path.name == "heap_2024-03-09_07-05-01.prof"
        assert second.path.name == "heap_2024-03-09_07-05-01_1.prof"
        assert third.path.name == "heap_2024-03-09_07-05-01_2.prof"
        assert first.path.read_bytes() == b"one"
        assert second.path.read_bytes() == b"two"

    def test_missing_directory_fails(self, temp_dir):
        with pytest.raises(WriteFailedError) as exc_info:
            write_artifact(temp_dir / "missing", "cpu", MOMENT, b"data")

        assert exc_info.value.path.parent == temp_dir / "missing"

    def test_partial_write_is_removed(self, temp_dir, monkeypatch):
        real_open = open

        class FailingFile:
            """Writes part of the payload, then fails like a full disk."""

            def __init__(self, path, mode):
                self._f = real_open(path, mode)

            def __enter__(self):
                return self

            def __exit__(self, *exc_info):
                self._f.close()
                return False

            def write(self, data):
                self._f.write(data[:10])
                self._f.flush()
                raise OSError(28, "No space left on device")

        monkeypatch.setattr(artifacts, "open", FailingFile, raising=False)

        with pytest.raises(WriteFailedError):
            write_artifact(temp_dir, "heap", MOMENT, b"x" * 100)

        assert list(temp_dir.iterdir()) == []

    @pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX resource limits")
    def test_file_size_limit_leaves_no_artifact(self, temp_dir):
        # Runs in a child so the file size limit does not affect the test process.
        src_dir = Path(__file__).parents[3] / "src"
        script = textwrap.dedent(f"""
            import resource, signal, sys
            from datetime import datetime
            from pathlib import Path
            sys.path.insert(0, {str(src_dir)!r})
            from profsampler.sampling.artifacts import write_artifact
            from profsampler.validation import WriteFailedError

            signal.signal(signal.SIGXFSZ, signal.SIG_IGN)
            resource.setrlimit(resource.RLIMIT_FSIZE, (10, 10))
            try:
                write_artifact(Path({str(temp_dir)!r}), "heap", datetime(2024, 1, 1), b"x" * 100)
            except WriteFailedError:
                sys.exit(0)
            sys.exit(1)
        """)

        result = subprocess.run([sys.executable, "-c", script], timeout=30)

        assert result.returncode == 0
        assert list(temp_dir.iterdir()) == []
