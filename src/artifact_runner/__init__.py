from .config import RunnerParams, load_params
from .errors import (
    ConfigurationError,
    DirectoryNotFoundError,
    RunnerError,
    ScrapeArtifactsError,
    ScrapeError,
)
from .runner import ScraperRunner, new_runner, resolve_directories
from .scraping import S3Scraper, Scraper
from .types import ArtifactRequest, ExecutionRequest, ExecutionResult, ExecutionStatus

__all__ = [
    "ArtifactRequest",
    "ConfigurationError",
    "DirectoryNotFoundError",
    "ExecutionRequest",
    "ExecutionResult",
    "ExecutionStatus",
    "RunnerError",
    "RunnerParams",
    "S3Scraper",
    "ScrapeArtifactsError",
    "ScrapeError",
    "Scraper",
    "ScraperRunner",
    "load_params",
    "new_runner",
    "resolve_directories",
]
