"""
signals/contactability.py

How reachable the organization is: emails, phones, forms, chat widgets,
messaging apps, hours and a street address.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

from signals.base import SignalExtractor, SignalOutput
from signals.text import WeightedPattern, clamp01, looks_like_html, saturate, score_patterns, visible_text

EMAIL = re.compile(r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b", re.IGNORECASE)
_ASSET_SUFFIX = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg")

PATTERNS: tuple[WeightedPattern, ...] = (
    WeightedPattern(
        "phone",
        re.compile(r"(?:\+?1[\s.-]?)?\(?\b\d{3}\)?[\s.-]\d{3}[\s.-]\d{4}\b"),
        0.3,
        "phone number",
    ),
    WeightedPattern(
        "obfuscated_email",
        re.compile(r"\b[a-z0-9._%+-]+\s*(?:\[at\]|\(at\)|\sat\s)\s*[a-z0-9-]+\s*(?:\[dot\]|\(dot\)|\sdot\s)\s*[a-z]{2,}\b", re.I),
        0.15,
        "obfuscated email",
    ),
    WeightedPattern(
        "contact_links",
        re.compile(r"href=[\"'](?:mailto|tel):", re.I),
        0.15,
        "mailto/tel links",
        on_raw=True,
    ),
    WeightedPattern(
        "contact_words",
        re.compile(r"\b(contact\s+us|get\s+in\s+touch|send\s+us\s+a\s+message|talk\s+to\s+(?:sales|an?\s+expert)|request\s+a\s+call)\b", re.I),
        0.15,
        "contact call-to-action",
    ),
    WeightedPattern(
        "chat_widget",
        re.compile(r"(widget\.intercom\.io|intercomcdn|client\.crisp\.chat|js\.driftt\.com|embed\.tawk\.to|cdn\.livechatinc\.com|static\.zdassets\.com|js\.hs-scripts\.com)", re.I),
        0.15,
        "live chat widget",
        on_raw=True,
    ),
    WeightedPattern(
        "messaging",
        re.compile(r"(wa\.me/|api\.whatsapp\.com|\bwhatsapp\b|m\.me/|\bmessenger\b|t\.me/|\btelegram\b)", re.I),
        0.1,
        "messaging app",
    ),
    WeightedPattern(
        "hours",
        re.compile(r"\b(mon(?:day)?)\s*(?:-|to|through|–)\s*(fri(?:day)?|sat(?:urday)?)\b", re.I),
        0.1,
        "business hours",
    ),
    WeightedPattern(
        "street_address",
        re.compile(r"\b\d{2,5}\s+(?:[A-Z0-9][A-Za-z0-9.]*\s+){1,4}(?:street|st|avenue|ave|road|rd|boulevard|blvd|drive|dr|lane|ln|way|parkway|pkwy|suite|ste)\b\.?", re.I),
        0.15,
        "street address",
    ),
)

EMAIL_WEIGHT = 0.3
FORM_WEIGHT = 0.2


def find_emails(text: str) -> list[str]:
    emails: list[str] = []
    for match in EMAIL.finditer(text):
        email = match.group(0).lower()
        if email.endswith(_ASSET_SUFFIX) or email in emails:
            continue
        emails.append(email)
    return emails


def count_contact_forms(raw: str) -> int:
    """
    Count forms that accept a free-text message or an email address.
    """

    if "<form" not in raw.lower() or not looks_like_html(raw):
        return 0
    soup = BeautifulSoup(raw, "html.parser")
    count = 0
    for form in soup.find_all("form"):
        if form.find("textarea") is not None or form.find("input", attrs={"type": "email"}) is not None:
            count += 1
    return count


class ContactabilityExtractor(SignalExtractor):
    key = "contactability"

    def extract(self, text: str) -> SignalOutput:
        raw = text or ""
        visible = visible_text(raw)
        total, reasons, hits = score_patterns(raw, visible, PATTERNS)

        emails = find_emails(visible)
        if emails:
            total += saturate(len(emails), EMAIL_WEIGHT)
            reasons.insert(0, f"email: {emails[0]}" if len(emails) == 1 else f"{len(emails)} emails")

        forms = count_contact_forms(raw)
        if forms:
            total += saturate(forms, FORM_WEIGHT)
            reasons.append("contact form")

        return SignalOutput(
            score=clamp01(total),
            reasons=tuple(reasons),
            details={"emails": emails[:10], "forms": forms, "hits": hits},
        )
