"""
signals/demand.py

Buying and demand activity: ad pixels, RFQ wording, bulk pricing, commerce
surfaces and product launches.
"""

from __future__ import annotations

import re

from signals.base import SignalExtractor, SignalOutput
from signals.text import WeightedPattern, clamp01, saturate, score_patterns, visible_text

AD_PLATFORMS: dict[str, re.Pattern[str]] = {
    "meta": re.compile(r"(connect\.facebook\.net/[^\"']*fbevents|fbq\(\s*['\"]init)", re.I),
    "google_ads": re.compile(r"(googleadservices\.com|google_conversion_id|gtag\(\s*['\"]config['\"]\s*,\s*['\"]AW-)", re.I),
    "tiktok": re.compile(r"(analytics\.tiktok\.com|ttq\.load\()", re.I),
    "linkedin": re.compile(r"(snap\.licdn\.com|_linkedin_partner_id)", re.I),
    "pinterest": re.compile(r"(s\.pinimg\.com/ct/core\.js|pintrk\()", re.I),
    "microsoft": re.compile(r"bat\.bing\.com", re.I),
}
AD_PLATFORM_WEIGHT = 0.3

PATTERNS: tuple[WeightedPattern, ...] = (
    WeightedPattern(
        "rfq",
        re.compile(r"\b(request\s+(?:a|for)\s+(?:quote|quotation|proposal)|get\s+a\s+quote|rfq|request\s+pricing|custom\s+quote)\b", re.I),
        0.25,
        "RFQ/quote request",
    ),
    WeightedPattern(
        "bulk",
        re.compile(r"\b(bulk\s+(?:order|orders|pricing|discount)|wholesale\s+pricing|volume\s+discounts?|minimum\s+order|moq|case\s+packs?)\b", re.I),
        0.2,
        "bulk/wholesale pricing",
    ),
    WeightedPattern(
        "commerce",
        re.compile(r"\b(add\s+to\s+cart|shopping\s+cart|buy\s+now|shop\s+now)\b", re.I),
        0.1,
        "online ordering",
    ),
    WeightedPattern(
        "storefront",
        re.compile(r"(cdn\.shopify\.com|myshopify\.com|woocommerce|bigcommerce\.com|magento)", re.I),
        0.05,
        "ecommerce platform",
        on_raw=True,
    ),
    WeightedPattern(
        "launches",
        re.compile(r"\b(new\s+arrivals?|new\s+products?|now\s+available|back\s+in\s+stock|restock(?:ed|ing)?|just\s+launched)\b", re.I),
        0.1,
        "new products/restocks",
    ),
    WeightedPattern(
        "tag_manager",
        re.compile(r"googletagmanager\.com/gtm\.js", re.I),
        0.05,
        "tag manager",
        on_raw=True,
    ),
)


def detect_ad_platforms(raw: str) -> list[str]:
    return [name for name, pattern in AD_PLATFORMS.items() if pattern.search(raw)]


class DemandExtractor(SignalExtractor):
    key = "demand"

    def extract(self, text: str) -> SignalOutput:
        raw = text or ""
        total, reasons, hits = score_patterns(raw, visible_text(raw), PATTERNS)

        platforms = detect_ad_platforms(raw)
        if platforms:
            total += saturate(len(platforms), AD_PLATFORM_WEIGHT)
            reasons.insert(0, f"ad pixels: {', '.join(platforms)}")

        return SignalOutput(
            score=clamp01(total),
            reasons=tuple(reasons),
            details={"ad_platforms": platforms, "hits": hits},
        )
