"""
leadgen/connectors package marker.
"""

from leadgen.connectors.base import ProviderRequestError, SearchProvider
from leadgen.connectors.bing import BingProvider
from leadgen.connectors.brave import BraveProvider
from leadgen.connectors.common_crawl import CommonCrawlProvider
from leadgen.connectors.google_cse import GoogleCSEProvider
from leadgen.connectors.serper import SerperProvider

__all__ = [
    "BingProvider",
    "BraveProvider",
    "CommonCrawlProvider",
    "GoogleCSEProvider",
    "ProviderRequestError",
    "SearchProvider",
    "SerperProvider",
]
