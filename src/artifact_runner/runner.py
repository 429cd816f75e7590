from __future__ import annotations

import logging
import os
from pathlib import Path

from .config import RunnerParams, load_params
from .errors import DirectoryNotFoundError, ScrapeArtifactsError
from .scraping.s3_scraper import S3Scraper
from .scraping.scraper import Scraper
from .types import ExecutionRequest, ExecutionResult

logger = logging.getLogger(__name__)


def resolve_directories(volume_mount_path: str, dirs: list[str]) -> list[str]:
    """Join each requested subdirectory onto the volume mount path.

    Leading separators on a subdirectory are dropped so the result always
    stays below the mount path.

    Example:
        ```python
        paths = resolve_directories("/data/run-1", ["logs", "reports"])
        # ["/data/run-1/logs", "/data/run-1/reports"]
        ```
    """
    return [str(Path(volume_mount_path, name.lstrip(os.sep))) for name in dirs]


def _check_directory(path: str) -> Exception | None:
    """Return the error for a volume mount path that cannot be stat'ed.

    Example:
        ```python
        err = _check_directory("/data/run-1")  # DirectoryNotFoundError or None
        ```
    """
    try:
        os.stat(path)
    except FileNotFoundError:
        return DirectoryNotFoundError(path)
    except OSError as exc:
        return exc
    return None


class ScraperRunner:
    """Capture the artifact directories of completed executions.

    Example:
        ```python
        runner = ScraperRunner(scraper, scraper_enabled=True)
        result = runner.run(ExecutionRequest(id="65a1f0c2", artifact_request=request))
        ```
    """

    def __init__(self, scraper: Scraper, *, scraper_enabled: bool = False) -> None:
        """Bind the scraper capability and the capture switch.

        Example:
            ```python
            runner = ScraperRunner(S3Scraper(endpoint="minio:9000", access_key_id="k", secret_access_key="s"))
            ```
        """
        self._scraper = scraper
        self._scraper_enabled = scraper_enabled

    @property
    def scraper_enabled(self) -> bool:
        """Return whether artifacts are uploaded at all.

        Example:
            ```python
            if runner.scraper_enabled: ...
            ```
        """
        return self._scraper_enabled

    def run(self, execution: ExecutionRequest) -> ExecutionResult:
        """Check and scrape the artifacts of one execution.

        Failures never raise; they are appended to the returned result in the
        order they were detected.

        Example:
            ```python
            result = runner.run(execution)
            if result.errors: ...
            ```
        """
        result = ExecutionResult()
        request = execution.artifact_request
        if request is None:
            return result

        dir_error = _check_directory(request.volume_mount_path)
        if dir_error is not None:
            logger.warning(f"Execution {execution.id}: {dir_error}")
        result.with_errors(dir_error)

        # scrape even if the mount path check failed, partial output may exist
        if self._scraper_enabled and request.dirs:
            directories = resolve_directories(request.volume_mount_path, request.dirs)
            logger.info(
                f"Scraping {len(directories)} artifact director"
                f"{'y' if len(directories) == 1 else 'ies'} for execution {execution.id}"
            )
            try:
                self._scraper.scrape(execution.id, directories)
            except Exception as exc:
                logger.error(f"Execution {execution.id}: scrape artifacts error: {exc}")
                result.with_errors(ScrapeArtifactsError(exc))

        return result


def new_runner(params: RunnerParams | None = None) -> ScraperRunner:
    """Build a runner backed by S3 storage from `RUNNER_*` settings.

    Example:
        ```python
        runner = new_runner()  # raises ConfigurationError on malformed settings
        ```
    """
    resolved = params if params is not None else load_params()
    scraper = S3Scraper(
        endpoint=resolved.endpoint,
        access_key_id=resolved.access_key_id,
        secret_access_key=resolved.secret_access_key,
        location=resolved.location,
        token=resolved.token,
        ssl=resolved.ssl,
    )
    return ScraperRunner(scraper, scraper_enabled=resolved.scrapper_enabled)
