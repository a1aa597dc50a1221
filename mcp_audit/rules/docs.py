"""README shape and outbound link hygiene."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urlsplit

from mcp_audit.project import Project
from mcp_audit.rules.base import ALL_KINDS, SECTION_DOCS, SECTION_LINKS, Check, Severity

README = "README.md"
SUPPORT_SECTION = "Support"
FOOTER_MARKER = "Built with"
ATTRIBUTION = "Very Good Plugins"

TRACKED_DOMAINS = ("verygoodplugins.com", "wpfusion.com", "automem.ai")
TRACKING_PARAMETER = "utm_source"

_URL_PATTERN = re.compile(r"https?://[^\s)\]>\"'<]+")


@dataclass(frozen=True, slots=True)
class ReadmeContainsRule:
    """Requires README.md to contain a marker string."""

    rule_id: str
    marker: str
    description: str
    severity: Severity = "warning"
    kinds = ALL_KINDS
    section = SECTION_DOCS

    @property
    def title(self) -> str:
        return f"README has {self.description}"

    def check(self, project: Project) -> Check:
        text = project.read_text(README)
        if text is None:
            return Check.skipped(f"{README} missing, {self.description} not checked")
        if self.marker in text:
            return Check.passed(f"README has {self.description}")
        return Check.failed(f"README missing {self.description} ({self.marker!r})")


class ReadmeSectionRule:
    """Requires a README heading that starts with the Support section name."""

    rule_id = "readme_support_section"
    section = SECTION_DOCS
    title = f"README has a {SUPPORT_SECTION} section"
    severity: Severity = "warning"
    kinds = ALL_KINDS

    _heading = re.compile(rf"^\s{{0,3}}#{{1,6}}\s+(?:\W+\s*)?{SUPPORT_SECTION}\b", re.MULTILINE)

    def check(self, project: Project) -> Check:
        text = project.read_text(README)
        if text is None:
            return Check.skipped(f"{README} missing, sections not checked")
        if self._heading.search(text):
            return Check.passed(f"README has a {SUPPORT_SECTION} section")
        return Check.failed(f"README missing a {SUPPORT_SECTION} section")


class TrackedLinksRule:
    """Requires links to first-party domains to carry a UTM source parameter."""

    rule_id = "readme_utm_links"
    section = SECTION_LINKS
    title = "README links carry UTM tracking"
    severity: Severity = "warning"
    kinds = ALL_KINDS

    def check(self, project: Project) -> Check:
        text = project.read_text(README)
        if text is None:
            return Check.skipped(f"{README} missing, links not checked")

        untracked: list[str] = []
        for url in _URL_PATTERN.findall(text):
            if is_tracked_domain(url) and not has_tracking_parameter(url):
                untracked.append(url)
        if untracked:
            return Check.failed(
                f"Found {len(untracked)} links without {TRACKING_PARAMETER} tracking",
                untracked,
            )
        return Check.passed("All external links have UTM (or none found)")


def is_tracked_domain(url: str) -> bool:
    """Whether the URL points at a first-party domain; unparseable URLs never do."""
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return False
    return any(host == domain or host.endswith(f".{domain}") for domain in TRACKED_DOMAINS)


def has_tracking_parameter(url: str) -> bool:
    try:
        query = urlsplit(url).query
    except ValueError:
        return False
    return TRACKING_PARAMETER in parse_qs(query)
