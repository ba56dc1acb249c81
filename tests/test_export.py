import gzip
import json

import dm_state as st
from conftest import START
from dm_events import ingest
from dm_export import export_session


class FakeS3:
    def __init__(self, fail=False):
        self.fail = fail
        self.uploads = {}

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None):
        if self.fail:
            raise RuntimeError("access denied")
        self.uploads[(bucket, key)] = (fileobj.read(), ExtraArgs)

    def generate_presigned_url(self, op, Params, ExpiresIn):
        return f"https://{Params['Bucket']}.s3.amazonaws.com/{Params['Key']}?expires={ExpiresIn}"


def _configure(monkeypatch, fake):
    monkeypatch.setattr(st, "s3", fake)
    monkeypatch.setattr(st, "S3_BUCKET", "meter-archive")
    monkeypatch.setattr(st, "S3_PREFIX", "records/")
    monkeypatch.setattr(st, "AWS_REGION", "eu-west-1")


def test_export_uploads_gzipped_snapshot(registry, damage, monkeypatch):
    fake = FakeS3()
    _configure(monkeypatch, fake)
    session = registry.create_session(START, "r1")
    ingest(registry, damage(500, 100), "r1")

    url, key = export_session(session, expires=60)

    assert key == "records/record_r1.json.gz"
    assert url == "https://meter-archive.s3.eu-west-1.amazonaws.com/records/record_r1.json.gz?expires=60"
    body, extra = fake.uploads[("meter-archive", key)]
    assert extra["ContentEncoding"] == "gzip"
    data = json.loads(gzip.decompress(body))
    assert data["id"] == "r1"
    assert data["players"][0]["total_damage"] == [100]


def test_export_without_s3_is_a_no_op(registry, monkeypatch):
    monkeypatch.setattr(st, "s3", None)
    assert export_session(registry.create_session(START)) == (None, None)


def test_export_failure_is_reported_not_raised(registry, monkeypatch, capsys):
    _configure(monkeypatch, FakeS3(fail=True))
    assert export_session(registry.create_session(START)) == (None, None)
    assert "[Export/S3] Failed: access denied" in capsys.readouterr().out
