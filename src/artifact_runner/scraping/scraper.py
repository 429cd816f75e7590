from __future__ import annotations

from typing import Protocol


class Scraper(Protocol):
    def scrape(self, execution_id: str, directories: list[str]) -> None:
        """Upload the contents of absolute directories for one execution.

        Raises on failure; an empty directory list is a no-op.

        Example:
            ```python
            scraper.scrape("65a1f0c2", ["/data/run-1/logs", "/data/run-1/reports"])
            ```
        """
        ...
