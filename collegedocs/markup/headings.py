"""Section-heading detection.

The preview and the two export targets disagree on what counts as a heading:
the preview styles every all-caps line, while the PDF and image exports only
style all-caps lines that carry one of a few document keywords. Each target
gets its own named policy so the difference stays explicit.
"""
from __future__ import annotations

from dataclasses import dataclass

from .segments import MARKERS


def is_heading(line: str) -> bool:
    stripped = (line or '').strip()
    if not stripped or stripped in MARKERS:
        return False
    if stripped != stripped.upper():
        return False
    return any(ch.isalpha() for ch in stripped)


@dataclass(frozen=True)
class HeadingPolicy:
    name: str
    keywords: tuple[str, ...] = ()
    min_length: int = 1

    def matches(self, line: str) -> bool:
        if not is_heading(line):
            return False
        stripped = line.strip()
        if len(stripped) < self.min_length:
            return False
        if not self.keywords:
            return True
        return any(keyword in stripped for keyword in self.keywords)


PREVIEW_HEADINGS = HeadingPolicy(name='preview')

PDF_HEADINGS = HeadingPolicy(
    name='pdf',
    keywords=('TIME TABLE', 'CIRCULAR', 'NOTICE', 'EXAMINATION', 'HAPPY'),
    min_length=4,
)

IMAGE_HEADINGS = HeadingPolicy(
    name='image',
    keywords=('TIME TABLE', 'CIRCULAR', 'NOTICE', 'EXAMINATION', 'NOTES', 'HAPPY'),
    min_length=4,
)

HEADING_POLICIES: dict[str, HeadingPolicy] = {
    policy.name: policy for policy in (PREVIEW_HEADINGS, PDF_HEADINGS, IMAGE_HEADINGS)
}
