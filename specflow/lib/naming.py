"""
Branch and path naming.

The branch name derived here is the idempotency key for an item: once
recorded it is never regenerated, so the output format must stay stable.
"""

import re

from specflow.lib.constants import BRANCH_PREFIX, SLUG_MAX_LEN

_NON_SLUG_CHARS = re.compile(r'[^a-z0-9\s-]')
_WHITESPACE = re.compile(r'\s+')
_DASH_RUN = re.compile(r'-+')


def slugify(text: str) -> str:
    """Lowercase, drop punctuation, dash-join words, cap at SLUG_MAX_LEN chars.

    >>> slugify("Fix login bug!!")
    'fix-login-bug'
    """
    slug = _NON_SLUG_CHARS.sub("", text.lower()).strip()
    slug = _WHITESPACE.sub("-", slug)
    slug = _DASH_RUN.sub("-", slug)
    return slug[:SLUG_MAX_LEN]


def branch_name_for(issue_number: int, title: str) -> str:
    """Development branch for an issue: issue/{number}-{slug}."""
    return f"{BRANCH_PREFIX}{issue_number}-{slugify(title)}"


def worktree_dir_name(issue_number: int, title: str) -> str:
    """Directory name of an item's worktree under the worktree root."""
    return f"{issue_number}-{slugify(title)}"
