"""
Tests for run artifacts and the image build context
"""
import io
import json
import tarfile
from datetime import datetime, timezone

from health_stats_repro.artifacts import RecordWriter, open_log_file, run_stamp
from health_stats_repro.config import Settings
from health_stats_repro.runtime.image import build_context, render_dockerfile


def test_run_stamp_is_rfc3339_with_pid():
    started = datetime(2018, 3, 21, 10, 4, 5, tzinfo=timezone.utc)

    assert run_stamp(started, 4242) == "2018-03-21T10:04:05+00:00-4242"


def test_log_file_appends(tmp_path):
    with open_log_file(tmp_path, "stats-out", "stamp") as f:
        f.write("one\n")
    with open_log_file(tmp_path, "stats-out", "stamp") as f:
        f.write("two\n")

    assert (tmp_path / "stats-out-stamp").read_text() == "one\ntwo\n"


def test_record_writer_writes_json_lines():
    writer = RecordWriter(io.StringIO())

    writer.write({"Action": "health_status: healthy"})
    writer.write({"when": datetime(2018, 3, 21)})

    lines = writer.out.getvalue().splitlines()
    assert writer.count == 2
    assert json.loads(lines[0]) == {"Action": "health_status: healthy"}
    assert json.loads(lines[1]) == {"when": "2018-03-21 00:00:00"}


def test_dockerfile_rendering():
    dockerfile = render_dockerfile(Settings(image_sleep="30s", healthcheck_retries=5, _env_file=None))

    assert "FROM busybox@sha256:" in dockerfile
    assert "--retries=5" in dockerfile
    assert 'CMD ["sh", "-c", "sleep 30s"]' in dockerfile


def test_build_context_holds_only_the_dockerfile():
    context = build_context("FROM scratch\n")

    with tarfile.open(fileobj=context) as tar:
        assert tar.getnames() == ["Dockerfile"]
        assert tar.extractfile("Dockerfile").read() == b"FROM scratch\n"
