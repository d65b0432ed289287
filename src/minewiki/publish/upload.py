# ABOUTME: Uploads the generated image and API directories to S3-compatible object storage (Cloudflare R2)
# ABOUTME: Settings come from flags, R2_* environment variables and an optional env file; boto3 calls run in threads

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import boto3
import pydantic
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from minewiki.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_ENV_FILE = ".env.r2"
FAILURES_SHOWN = 20

CONTENT_TYPES = {
    ".png": "image/png",
    ".gif": "image/gif",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".json": "application/json; charset=utf-8",
    ".txt": "text/plain; charset=utf-8",
}


class UploadConfigError(Exception):
    """Raised when the upload options are incomplete or invalid."""

    pass


class UploadSettings(BaseSettings):
    """Upload options read from ``R2_*`` variables.

    Values in the env file never override variables already set in the
    environment; keyword arguments (command-line flags) override both.
    """

    model_config = SettingsConfigDict(
        env_prefix="R2_",
        env_file=DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    public_dir: Path = Path("public")
    include: str = Field(default="blocks,items", description="Comma separated directories under public_dir")
    bucket: str = ""
    endpoint: str = ""
    account_id: str = ""
    access_key_id: str = Field(
        default="", validation_alias=AliasChoices("R2_ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID")
    )
    secret_access_key: str = Field(
        default="",
        validation_alias=AliasChoices("R2_SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY"),
    )
    prefix: str = ""
    concurrency: int = Field(default=10, gt=0)
    dry_run: bool = False
    skip_existing: bool = False
    cache_control: str | None = None

    @property
    def include_dirs(self) -> list[str]:
        return [part.strip() for part in self.include.split(",") if part.strip()]

    @property
    def normalized_prefix(self) -> str:
        return normalize_prefix(self.prefix)

    @property
    def resolved_endpoint(self) -> str:
        if self.endpoint:
            return self.endpoint
        if self.account_id:
            return f"https://{self.account_id}.r2.cloudflarestorage.com"
        return ""

    def check(self) -> "UploadSettings":
        """Ensure everything a run needs is present; credentials are only needed for real uploads."""
        if not self.bucket:
            raise UploadConfigError("Missing bucket. Provide `--bucket <name>` or set `R2_BUCKET`.")
        if not self.resolved_endpoint:
            raise UploadConfigError(
                "Missing endpoint. Provide `--endpoint <url>`, set `R2_ENDPOINT`, or set `R2_ACCOUNT_ID`."
            )
        if not self.dry_run:
            if not self.access_key_id:
                raise UploadConfigError("Missing required env var: R2_ACCESS_KEY_ID or AWS_ACCESS_KEY_ID")
            if not self.secret_access_key:
                raise UploadConfigError("Missing required env var: R2_SECRET_ACCESS_KEY or AWS_SECRET_ACCESS_KEY")
        return self


def load_upload_settings(env_file: str | Path | None = DEFAULT_ENV_FILE, **overrides: Any) -> UploadSettings:
    """Build validated upload settings; ``None`` overrides are ignored.

    Raises:
        UploadConfigError: When an option is missing or malformed
    """
    flags = {key: value for key, value in overrides.items() if value is not None}
    env_path = Path(env_file) if env_file else None
    try:
        settings = UploadSettings(_env_file=env_path if env_path and env_path.is_file() else None, **flags)
    except pydantic.ValidationError as e:
        if any(error["loc"] == ("concurrency",) for error in e.errors()):
            raise UploadConfigError("`--concurrency` must be a positive number.") from e
        raise UploadConfigError(str(e)) from e
    return settings.check()


def normalize_prefix(prefix: str) -> str:
    """Strip surrounding slashes and end with one: "/images/" -> "images/"; blank stays blank."""
    stripped = (prefix or "").strip("/")
    return f"{stripped}/" if stripped else ""


def guess_content_type(path: Path) -> str | None:
    return CONTENT_TYPES.get(Path(path).suffix.lower())


def collect_files(directory: Path) -> list[Path]:
    """Every regular file under ``directory``; hidden files and directories are skipped."""
    files = []
    for entry in sorted(Path(directory).iterdir()):
        if entry.name.startswith("."):
            continue
        if entry.is_dir():
            files.extend(collect_files(entry))
        elif entry.is_file():
            files.append(entry)
    return files


def object_key(public_dir: Path, path: Path, prefix: str) -> str:
    return prefix + Path(path).relative_to(public_dir).as_posix()


def is_not_found(error: Exception) -> bool:
    if not isinstance(error, ClientError):
        return False
    code = str(error.response.get("Error", {}).get("Code", ""))
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return status == 404 or code in ("404", "NotFound", "NoSuchKey")


@dataclass
class UploadFailure:
    path: Path
    error: str


@dataclass
class UploadResult:
    bucket: str
    prefix: str
    total: int = 0
    uploaded: int = 0
    skipped: int = 0
    dry_run: bool = False
    skip_existing: bool = False
    failures: list[UploadFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def summary(self) -> str:
        if self.dry_run:
            text = f"Dry run queued {self.uploaded} objects"
        elif self.skip_existing:
            text = f"Uploaded {self.uploaded} objects (skipped existing: {self.skipped})"
        else:
            text = f"Uploaded {self.uploaded} objects"
        return f"{text} to {self.bucket}/{self.prefix}"


class R2Uploader:
    """Uploads files below the included public directories with bounded concurrency."""

    def __init__(self, settings: UploadSettings, client: Any = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.settings.resolved_endpoint,
                aws_access_key_id=self.settings.access_key_id,
                aws_secret_access_key=self.settings.secret_access_key,
                region_name="auto",
                config=BotoConfig(s3={"addressing_style": "path"}),
            )
        return self._client

    def plan(self) -> list[tuple[Path, str]]:
        """(file, key) pairs in upload order.

        Raises:
            UploadConfigError: When an included directory does not exist
        """
        base_dir = self.settings.public_dir.resolve()
        prefix = self.settings.normalized_prefix
        roots = [base_dir / name for name in self.settings.include_dirs]
        for root in roots:
            if not root.is_dir():
                raise UploadConfigError(f"Directory not found: {root}")

        files = sorted(path for root in roots for path in collect_files(root))
        return [(path, object_key(base_dir, path, prefix)) for path in files]

    def _exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.settings.bucket, Key=key)
        except ClientError as e:
            if is_not_found(e):
                return False
            raise
        return True

    def _put(self, path: Path, key: str) -> None:
        extra: dict[str, str] = {}
        content_type = guess_content_type(path)
        if content_type:
            extra["ContentType"] = content_type
        if self.settings.cache_control:
            extra["CacheControl"] = self.settings.cache_control
        with path.open("rb") as body:
            self.client.put_object(Bucket=self.settings.bucket, Key=key, Body=body, **extra)

    async def run(self) -> UploadResult:
        planned = self.plan()
        result = UploadResult(
            bucket=self.settings.bucket,
            prefix=self.settings.normalized_prefix,
            total=len(planned),
            dry_run=self.settings.dry_run,
            skip_existing=self.settings.skip_existing,
        )

        if self.settings.dry_run:
            result.uploaded = len(planned)
            logger.info("Dry run, nothing uploaded", queued=len(planned))
            return result

        semaphore = asyncio.Semaphore(self.settings.concurrency)

        async def upload(path: Path, key: str) -> None:
            async with semaphore:
                try:
                    if self.settings.skip_existing and await asyncio.to_thread(self._exists, key):
                        result.skipped += 1
                        return
                    await asyncio.to_thread(self._put, path, key)
                except Exception as e:
                    logger.error("Upload failed", file=str(path), key=key, error=str(e))
                    result.failures.append(UploadFailure(path=path, error=str(e)))
                    return

                result.uploaded += 1
                if result.uploaded % 50 == 0 or result.uploaded == len(planned):
                    logger.info("Upload progress", uploaded=result.uploaded, total=len(planned))

        await asyncio.gather(*(upload(path, key) for path, key in planned))

        if result.failures:
            logger.error("Failed uploads", failed=len(result.failures), total=len(planned))
        else:
            logger.info("Upload finished", uploaded=result.uploaded, skipped=result.skipped)
        return result
