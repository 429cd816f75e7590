from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ScrapeError

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"
_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}
_BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")
_IP_ADDRESS_PATTERN = re.compile(r"^\d+\.\d+\.\d+\.\d+$")


def build_endpoint_url(endpoint: str, ssl: bool) -> str | None:
    """Return the client endpoint URL for a bare host or a full URL.

    Example:
        ```python
        url = build_endpoint_url("minio.local:9000", ssl=False)  # "http://minio.local:9000"
        ```
    """
    cleaned = endpoint.strip()
    if not cleaned:
        return None
    if "://" in cleaned:
        return cleaned
    scheme = "https" if ssl else "http"
    return f"{scheme}://{cleaned}"


def validate_bucket_name(name: str) -> str:
    """Return the execution id when it is a valid S3 bucket name.

    Example:
        ```python
        bucket = validate_bucket_name("65a1f0c2")
        ```
    """
    if not _BUCKET_NAME_PATTERN.match(name) or ".." in name or _IP_ADDRESS_PATTERN.match(name):
        raise ScrapeError(
            f"execution id {name!r} is not a valid bucket name: use 3-63 lowercase "
            "letters, digits, dots or hyphens, starting and ending with a letter or digit"
        )
    return name


def key_base(directories: list[str]) -> Path:
    """Return the common parent that object keys are made relative to.

    Keys keep every path part below that parent, so directories sharing a
    name in different places get distinct keys.

    Example:
        ```python
        base = key_base(["/data/run-1/logs", "/data/run-1/reports"])  # Path("/data/run-1")
        ```
    """
    parents = [str(Path(directory).parent) for directory in directories]
    return Path(os.path.commonpath(parents))


def collect_artifact_files(directory: Path, base: Path) -> list[tuple[Path, str]]:
    """Return every regular file below a directory paired with its object key.

    Example:
        ```python
        files = collect_artifact_files(Path("/data/run-1/logs"), Path("/data/run-1"))
        # [(Path("/data/run-1/logs/a.log"), "logs/a.log")]
        ```
    """
    if not directory.is_dir():
        raise ScrapeError(f"artifact directory not found: {directory}")
    files: list[tuple[Path, str]] = []
    for file_path in sorted(directory.rglob("*")):
        if file_path.is_file():
            files.append((file_path, file_path.relative_to(base).as_posix()))
    return files


class S3Scraper:
    """Upload artifact directories to an S3-compatible object store.

    Each execution gets its own bucket named after the execution id.

    Example:
        ```python
        scraper = S3Scraper(endpoint="minio:9000", access_key_id="key", secret_access_key="secret")
        ```
    """

    def __init__(
        self,
        *,
        endpoint: str,
        access_key_id: str,
        secret_access_key: str,
        location: str = "",
        token: str = "",
        ssl: bool = False,
    ) -> None:
        """Create the S3 client bound to the given endpoint and credentials.

        Example:
            ```python
            scraper = S3Scraper(endpoint="s3.amazonaws.com", access_key_id="k", secret_access_key="s", ssl=True)
            ```
        """
        self._endpoint_url = build_endpoint_url(endpoint, ssl)
        self._location = location.strip()

        client_config: dict[str, Any] = {
            "service_name": "s3",
            "aws_access_key_id": access_key_id or None,
            "aws_secret_access_key": secret_access_key or None,
            "config": Config(s3={"addressing_style": "path"}),
        }
        if self._endpoint_url:
            client_config["endpoint_url"] = self._endpoint_url
        if self._location:
            client_config["region_name"] = self._location
        if token:
            client_config["aws_session_token"] = token

        self._client = boto3.client(**client_config)

    def scrape(self, execution_id: str, directories: list[str]) -> None:
        """Upload all files below the directories into the execution bucket.

        Missing directories are skipped so the others still get uploaded,
        then reported together in one `ScrapeError`.

        Example:
            ```python
            scraper.scrape("65a1f0c2", ["/data/run-1/logs"])
            ```
        """
        if not directories:
            logger.debug(f"No directories to scrape for execution {execution_id}")
            return
        bucket = validate_bucket_name(execution_id)
        base = key_base(directories)

        missing: list[str] = []
        try:
            uploads: list[tuple[Path, str]] = []
            for directory in directories:
                if not Path(directory).is_dir():
                    logger.warning(f"Skipping missing artifact directory {directory}")
                    missing.append(directory)
                    continue
                uploads.extend(collect_artifact_files(Path(directory), base))

            if uploads:
                self._ensure_bucket(bucket)
            for file_path, key in uploads:
                self._client.upload_file(str(file_path), bucket, key)
                logger.debug(f"Uploaded {file_path} to {bucket}/{key}")
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as exc:
            raise ScrapeError(
                f"failed to upload artifacts for execution {execution_id}: {exc}"
            ) from exc

        logger.info(
            f"Scraped {len(uploads)} file(s) from {len(directories) - len(missing)} "
            f"of {len(directories)} director{'y' if len(directories) == 1 else 'ies'} "
            f"into bucket {bucket}"
        )
        if missing:
            raise ScrapeError(f"artifact directory not found: {', '.join(missing)}")

    def _ensure_bucket(self, bucket: str) -> None:
        """Create the execution bucket when it does not exist yet.

        Example:
            ```python
            scraper._ensure_bucket("65a1f0c2")
            ```
        """
        try:
            self._client.head_bucket(Bucket=bucket)
            return
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") not in _MISSING_BUCKET_CODES:
                raise

        if self._endpoint_url or not self._location or self._location == DEFAULT_REGION:
            self._client.create_bucket(Bucket=bucket)
        else:
            self._client.create_bucket(
                Bucket=bucket,
                CreateBucketConfiguration={"LocationConstraint": self._location},
            )
        logger.info(f"Created bucket: {bucket}")
