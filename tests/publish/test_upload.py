# ABOUTME: Tests for uploading the public directories to S3-compatible storage
# ABOUTME: Uses a fake S3 client; settings are read from flags, R2_* variables and env files

from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from minewiki.publish.upload import (
    R2Uploader,
    UploadConfigError,
    UploadResult,
    collect_files,
    guess_content_type,
    is_not_found,
    load_upload_settings,
    normalize_prefix,
    object_key,
)


class FakeS3Client:
    """Records put_object calls; head_object answers from a set of existing keys."""

    def __init__(self, existing: set[str] | None = None, failing: set[str] | None = None):
        self.existing = existing or set()
        self.failing = failing or set()
        self.puts: list[dict] = []
        self.heads: list[str] = []

    def head_object(self, Bucket: str, Key: str) -> dict:
        self.heads.append(Key)
        if Key in self.existing:
            return {}
        raise ClientError({"Error": {"Code": "404"}, "ResponseMetadata": {"HTTPStatusCode": 404}}, "HeadObject")

    def put_object(self, Bucket: str, Key: str, Body, **extra) -> dict:
        if Key in self.failing:
            raise ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject")
        self.puts.append({"Bucket": Bucket, "Key": Key, "Body": Body.read(), **extra})
        return {}


@pytest.fixture(autouse=True)
def clean_r2_environment(monkeypatch):
    for name in (
        "R2_BUCKET",
        "R2_ENDPOINT",
        "R2_ACCOUNT_ID",
        "R2_ACCESS_KEY_ID",
        "R2_SECRET_ACCESS_KEY",
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "R2_PREFIX",
        "R2_CONCURRENCY",
        "R2_DRY_RUN",
        "R2_SKIP_EXISTING",
        "R2_INCLUDE",
        "R2_PUBLIC_DIR",
        "R2_CACHE_CONTROL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def public_dir(tmp_path) -> Path:
    public = tmp_path / "public"
    (public / "items").mkdir(parents=True)
    (public / "blocks" / "nested").mkdir(parents=True)
    (public / "items" / "stick.png").write_bytes(b"stick")
    (public / "items" / ".DS_Store").write_bytes(b"junk")
    (public / "blocks" / "stone.png").write_bytes(b"stone")
    (public / "blocks" / "nested" / "data.json").write_text("[]")
    return public


def _settings(public_dir: Path, **overrides):
    options = {
        "public_dir": public_dir,
        "bucket": "mc-images",
        "endpoint": "https://r2.example",
        "access_key_id": "key",
        "secret_access_key": "secret",
    }
    options.update(overrides)
    return load_upload_settings(None, **options)


class TestHelpers:
    @pytest.mark.parametrize("prefix,expected", [("", ""), ("images", "images/"), ("/images/", "images/"), ("/", "")])
    def test_normalize_prefix(self, prefix, expected):
        assert normalize_prefix(prefix) == expected

    @pytest.mark.parametrize(
        "name,expected",
        [("a.PNG", "image/png"), ("a.gif", "image/gif"), ("index.json", "application/json; charset=utf-8"), ("a.bin", None)],
    )
    def test_content_type(self, name, expected):
        assert guess_content_type(Path(name)) == expected

    def test_collect_files_skips_hidden(self, public_dir):
        names = [path.name for path in collect_files(public_dir)]
        assert names == ["data.json", "stone.png", "stick.png"]

    def test_object_key(self, public_dir):
        path = public_dir / "blocks" / "nested" / "data.json"
        assert object_key(public_dir, path, "images/") == "images/blocks/nested/data.json"

    def test_is_not_found(self):
        assert is_not_found(ClientError({"Error": {"Code": "NoSuchKey"}}, "HeadObject"))
        assert not is_not_found(ClientError({"Error": {"Code": "AccessDenied"}}, "HeadObject"))
        assert not is_not_found(RuntimeError("404"))


class TestSettings:
    def test_environment_variables(self, monkeypatch, tmp_path):
        monkeypatch.setenv("R2_BUCKET", "env-bucket")
        monkeypatch.setenv("R2_ACCOUNT_ID", "abc123")
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "aws-key")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "aws-secret")
        monkeypatch.setenv("R2_CONCURRENCY", "4")

        settings = load_upload_settings(None)

        assert settings.bucket == "env-bucket"
        assert settings.resolved_endpoint == "https://abc123.r2.cloudflarestorage.com"
        assert settings.access_key_id == "aws-key"
        assert settings.concurrency == 4

    def test_r2_credentials_preferred(self, monkeypatch):
        monkeypatch.setenv("R2_ACCESS_KEY_ID", "r2-key")
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "aws-key")
        monkeypatch.setenv("R2_SECRET_ACCESS_KEY", "r2-secret")

        settings = load_upload_settings(None, bucket="b", endpoint="https://r2.example")
        assert settings.access_key_id == "r2-key"

    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("R2_BUCKET", "env-bucket")
        settings = load_upload_settings(None, bucket="flag-bucket", endpoint="https://r2.example", dry_run=True)
        assert settings.bucket == "flag-bucket"

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env.r2"
        env_file.write_text("R2_BUCKET=file-bucket\nR2_ENDPOINT=https://file.example\nR2_DRY_RUN=1\n")

        settings = load_upload_settings(env_file)
        assert (settings.bucket, settings.endpoint, settings.dry_run) == ("file-bucket", "https://file.example", True)

    def test_missing_env_file_ignored(self, tmp_path):
        with pytest.raises(UploadConfigError, match="Missing bucket"):
            load_upload_settings(tmp_path / "absent.env")

    def test_missing_endpoint(self):
        with pytest.raises(UploadConfigError, match="Missing endpoint"):
            load_upload_settings(None, bucket="b", dry_run=True)

    def test_credentials_required_for_real_upload(self):
        with pytest.raises(UploadConfigError, match="R2_ACCESS_KEY_ID"):
            load_upload_settings(None, bucket="b", endpoint="https://r2.example")

    @pytest.mark.parametrize("concurrency", [0, -3])
    def test_concurrency_must_be_positive(self, concurrency):
        with pytest.raises(UploadConfigError, match="positive number"):
            load_upload_settings(None, bucket="b", endpoint="https://r2.example", dry_run=True, concurrency=concurrency)


class TestR2Uploader:
    @pytest.mark.asyncio
    async def test_uploads_with_prefix_and_headers(self, public_dir):
        client = FakeS3Client()
        settings = _settings(public_dir, prefix="/images/", cache_control="public, max-age=31536000")

        result = await R2Uploader(settings, client=client).run()

        assert result.ok
        assert (result.total, result.uploaded) == (3, 3)
        keys = {put["Key"] for put in client.puts}
        assert keys == {"images/items/stick.png", "images/blocks/stone.png", "images/blocks/nested/data.json"}
        stick = next(put for put in client.puts if put["Key"] == "images/items/stick.png")
        assert stick["Body"] == b"stick"
        assert stick["ContentType"] == "image/png"
        assert stick["CacheControl"] == "public, max-age=31536000"
        assert client.heads == []
        assert result.summary == "Uploaded 3 objects to mc-images/images/"

    @pytest.mark.asyncio
    async def test_include_limits_directories(self, public_dir):
        client = FakeS3Client()
        result = await R2Uploader(_settings(public_dir, include="items"), client=client).run()

        assert [put["Key"] for put in client.puts] == ["items/stick.png"]
        assert result.total == 1

    @pytest.mark.asyncio
    async def test_dry_run_makes_no_calls(self, public_dir):
        settings = _settings(public_dir, dry_run=True, access_key_id="", secret_access_key="")
        uploader = R2Uploader(settings)

        result = await uploader.run()

        assert result.dry_run
        assert result.uploaded == 3
        assert uploader._client is None
        assert result.summary.startswith("Dry run queued 3 objects")

    @pytest.mark.asyncio
    async def test_skip_existing(self, public_dir):
        client = FakeS3Client(existing={"items/stick.png"})
        result = await R2Uploader(_settings(public_dir, skip_existing=True), client=client).run()

        assert (result.uploaded, result.skipped) == (2, 1)
        assert "items/stick.png" not in {put["Key"] for put in client.puts}
        assert sorted(client.heads) == ["blocks/nested/data.json", "blocks/stone.png", "items/stick.png"]

    @pytest.mark.asyncio
    async def test_failures_collected(self, public_dir):
        client = FakeS3Client(failing={"blocks/stone.png"})
        result = await R2Uploader(_settings(public_dir, concurrency=1), client=client).run()

        assert not result.ok
        assert result.uploaded == 2
        assert [failure.path.name for failure in result.failures] == ["stone.png"]
        assert "AccessDenied" in result.failures[0].error

    @pytest.mark.asyncio
    async def test_missing_directory(self, tmp_path):
        settings = _settings(tmp_path / "nowhere", dry_run=True)
        with pytest.raises(UploadConfigError, match="Directory not found"):
            await R2Uploader(settings).run()


class TestUploadResult:
    def test_skip_existing_summary(self):
        result = UploadResult(bucket="b", prefix="", uploaded=2, skipped=1, skip_existing=True)
        assert result.summary == "Uploaded 2 objects (skipped existing: 1) to b/"
