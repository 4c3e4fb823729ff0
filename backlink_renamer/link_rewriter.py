"""Rewriting of ``[[target|display]]`` wiki-links from an old title to a new one."""

import re
import logging
from typing import List, NamedTuple, Optional

from .models import LinkOccurrence, RenameJob


logger = logging.getLogger(__name__)

# Horizontal whitespace allowed around the title in tolerant mode
_PADDING = r'[\t\f ]*'


class RewriteResult(NamedTuple):
    """Rewritten body and the number of links changed."""

    text: str
    replacements: int

    @property
    def changed(self) -> bool:
        return self.replacements > 0


def build_link_pattern(title: str, whitespace_tolerant: bool = True) -> "re.Pattern[str]":
    """
    Compile a pattern matching links to ``title``.

    The title is matched literally and case-sensitively. Display text, when
    present, is captured in group 1 and may not contain square brackets.
    """
    padding = _PADDING if whitespace_tolerant else ''
    return re.compile(
        r'\[\[' + padding + re.escape(title) + padding + r'(?:\|([^\[\]]+))?\]\]'
    )


class LinkRewriter:
    """Repoints links from ``old_title`` to ``new_title`` inside wikitext.

    Only the matched link spans change; every other byte of the body is kept.
    Malformed markup (unterminated links, brackets inside display text, an
    empty display segment) simply does not match and is left as it is.
    """

    def __init__(self, old_title: str, new_title: str, keep_display_text: bool = False,
                 whitespace_tolerant: bool = True):
        self.old_title = old_title
        self.new_title = new_title
        self.keep_display_text = keep_display_text
        self.whitespace_tolerant = whitespace_tolerant
        self.pattern = build_link_pattern(old_title, whitespace_tolerant)

    @classmethod
    def from_job(cls, job: RenameJob, whitespace_tolerant: bool = True) -> "LinkRewriter":
        return cls(job.old_title, job.new_title, job.keep_display_text, whitespace_tolerant)

    def find_occurrences(self, body: str) -> List[LinkOccurrence]:
        """Return every link to the old title in order of appearance."""
        return [
            LinkOccurrence(start=m.start(), end=m.end(), display_text=m.group(1))
            for m in self.pattern.finditer(body)
        ]

    def render(self, display_text: Optional[str]) -> str:
        """Build the replacement link for one occurrence."""
        if display_text == self.new_title:
            display_text = None

        if display_text:
            return f"[[{self.new_title}|{display_text}]]"
        if self.keep_display_text:
            return f"[[{self.new_title}|{self.old_title}]]"
        return f"[[{self.new_title}]]"

    def rewrite(self, body: str) -> RewriteResult:
        """Rewrite all links to the old title, returning the new body."""
        changed = 0

        def replace(match):
            nonlocal changed
            replacement = self.render(match.group(1))
            # Links that already render identically are not counted
            if replacement != match.group(0):
                changed += 1
            return replacement

        text = self.pattern.sub(replace, body)
        if changed:
            logger.debug(f"Rewrote {changed} link(s) to '{self.old_title}'")
        return RewriteResult(text, changed)


def rewrite_links(body: str, job: RenameJob, whitespace_tolerant: bool = True) -> str:
    """Rewrite ``body`` for ``job`` and return only the new text."""
    return LinkRewriter.from_job(job, whitespace_tolerant).rewrite(body).text
