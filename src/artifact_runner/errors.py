from __future__ import annotations


class RunnerError(Exception):
    """Base class for artifact runner failures."""


class ConfigurationError(RunnerError):
    """Runner settings are missing or malformed."""


class DirectoryNotFoundError(RunnerError):
    """The volume mount path of an execution does not exist."""

    def __init__(self, path: str) -> None:
        """Build the not-found message for a missing directory.

        Example:
            ```python
            err = DirectoryNotFoundError("/data/run-1")
            ```
        """
        super().__init__(f"artifact directory not found: {path}")
        self.path = path


class ScrapeError(RunnerError):
    """A scraper could not upload the requested directories."""


class ScrapeArtifactsError(RunnerError):
    """Scrape failure as recorded on an execution result."""

    def __init__(self, cause: BaseException) -> None:
        """Wrap the scraper failure with the capture context.

        Example:
            ```python
            err = ScrapeArtifactsError(ScrapeError("disk full"))
            ```
        """
        super().__init__(f"scrape artifacts error: {cause}")
        self.__cause__ = cause
