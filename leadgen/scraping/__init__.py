"""
Crawler exports.
"""

from leadgen.scraping.html_parsers import HTMLPageParser, ParsedPage
from leadgen.scraping.robots import RobotsPolicyManager
from leadgen.scraping.spider import Spider
from leadgen.scraping.types import CrawlOptions, CrawlPage, CrawlResult

__all__ = [
    "CrawlOptions",
    "CrawlPage",
    "CrawlResult",
    "HTMLPageParser",
    "ParsedPage",
    "RobotsPolicyManager",
    "Spider",
]
