"""
Domain allowlist guard for page rendering.

Design:
- Allowlist entries are registrable domains ("example.com", "example.co.uk").
- A hostname matches an entry exactly or as one of its subdomains.
- localhost and IPv4 addresses only ever match exactly.
- Empty allowlist means allow all; local files are always allowed.
"""
from __future__ import annotations

import re
from typing import Iterable
from urllib.parse import urlsplit

from core.logger import logger

COMMON_SUBDOMAINS = frozenset({
    "www", "m", "mobile", "app", "api", "cdn", "static", "assets", "media",
    "img", "images", "js", "css", "fonts", "blog", "forum", "support", "help",
    "docs", "dev", "staging", "test", "beta", "alpha",
})

# Country TLDs whose registrable part spans three labels (example.co.uk)
COUNTRY_TLDS = frozenset({
    "uk", "au", "nz", "za", "br", "in", "jp", "kr", "cn", "ru", "de", "fr",
    "it", "es", "nl", "se", "no", "dk", "fi", "pl", "cz", "hu", "ro", "bg",
    "hr", "si", "sk", "ee", "lv", "lt", "mt", "cy", "gr", "pt", "ie", "be",
    "at", "ch", "lu", "li", "mc", "ad", "sm", "va",
})

_IPV4_RE = re.compile(r"\d+\.\d+\.\d+\.\d+")


def _is_exact_only(hostname: str) -> bool:
    return hostname == "localhost" or bool(_IPV4_RE.fullmatch(hostname))


def normalize_domain(hostname: str) -> str:
    """Reduce a hostname to the domain an allowlist entry is stored as."""
    if not hostname:
        return ""
    hostname = hostname.strip().lower().rstrip(".")
    if _is_exact_only(hostname):
        return hostname

    parts = hostname.split(".")
    if len(parts) <= 2:
        return hostname
    if parts[0] in COMMON_SUBDOMAINS:
        return ".".join(parts[1:])
    if parts[-1] in COUNTRY_TLDS:
        return ".".join(parts[-3:])
    return ".".join(parts[-2:])


def domain_matches(hostname: str, domain: str) -> bool:
    """True if ``hostname`` is ``domain`` or one of its subdomains."""
    if not hostname or not domain:
        return False
    hostname = hostname.strip().lower().rstrip(".")
    domain = domain.strip().lower().rstrip(".")
    if hostname == domain:
        return True
    if _is_exact_only(hostname):
        return False
    return hostname.endswith("." + domain)


def domain_display_name(hostname: str) -> str:
    normalized = normalize_domain(hostname)
    if normalized == hostname:
        return hostname
    return f"{normalized} (and subdomains)"


def is_domain_allowed(hostname_or_url: str | None, allowlist: Iterable[str]) -> bool:
    """
    Check a page against the allowlist.

    Accepts either a bare hostname or a full URL. Empty allowlist means
    allow all; ``file://`` pages are always allowed; a missing host is
    denied when a list is configured.
    """
    domains = [domain for domain in allowlist if domain]
    if not domains:
        return True
    if not hostname_or_url:
        return False

    hostname = hostname_or_url
    if "://" in hostname_or_url:
        parts = urlsplit(hostname_or_url)
        if parts.scheme == "file":
            return True
        hostname = parts.hostname or ""

    allowed = any(domain_matches(hostname, domain) for domain in domains)
    if not allowed:
        logger.info("Domain allowlist skipped page (host=%s)", hostname or "unknown")
    return allowed
