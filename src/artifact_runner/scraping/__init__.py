from .s3_scraper import S3Scraper
from .scraper import Scraper

__all__ = [
    "S3Scraper",
    "Scraper",
]
