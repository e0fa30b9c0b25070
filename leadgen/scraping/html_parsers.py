"""
BeautifulSoup-based parsing layer for crawled pages.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from leadgen.urls import resolve_link

_WHITESPACE = re.compile(r"\s+")
_NON_CONTENT_TAGS = ("script", "style", "noscript", "template", "svg", "iframe")
MAX_LINKS_PER_PAGE = 300


@dataclass(frozen=True)
class ParsedPage:
    title: str = ""
    description: str = ""
    keywords: str = ""
    text: str = ""
    links: list[tuple[str, str]] = field(default_factory=list)


class HTMLPageParser:
    """
    Deterministic parser utilities for HTML documents.
    """

    @classmethod
    def parse(cls, *, html: str, page_url: str) -> ParsedPage:
        soup = BeautifulSoup(html, "html.parser")
        links = cls.extract_links(soup=soup, page_url=page_url)
        title = cls._clean_text(soup.title.get_text(" ", strip=True)) if soup.title else ""
        description = cls._meta_content(soup, "description")
        keywords = cls._meta_content(soup, "keywords")

        for node in soup(_NON_CONTENT_TAGS):
            node.decompose()
        text = cls._clean_text(soup.get_text(" ", strip=True))

        return ParsedPage(
            title=title,
            description=description,
            keywords=keywords,
            text=text,
            links=links,
        )

    @classmethod
    def extract_links(cls, *, soup: BeautifulSoup, page_url: str) -> list[tuple[str, str]]:
        """
        Return (normalized url, anchor text) pairs in document order, first
        occurrence of each URL only.
        """

        links: list[tuple[str, str]] = []
        seen: set[str] = set()
        for anchor in soup.find_all("a", href=True):
            url = resolve_link(page_url, str(anchor.get("href") or ""))
            if not url or url in seen:
                continue
            seen.add(url)
            anchor_text = cls._clean_text(anchor.get_text(" ", strip=True))
            if not anchor_text:
                anchor_text = cls._clean_text(str(anchor.get("title") or anchor.get("aria-label") or ""))
            links.append((url, anchor_text))
            if len(links) >= MAX_LINKS_PER_PAGE:
                break
        return links

    @staticmethod
    def _meta_content(soup: BeautifulSoup, name: str) -> str:
        node = soup.find("meta", attrs={"name": re.compile(rf"^{name}$", re.IGNORECASE)})
        if node is None:
            node = soup.find("meta", attrs={"property": f"og:{name}"})
        if node is None:
            return ""
        return HTMLPageParser._clean_text(str(node.get("content") or ""))

    @staticmethod
    def _clean_text(value: str) -> str:
        return _WHITESPACE.sub(" ", value).strip()
