"""
Rule-based classification of raw backlog lines.

Pattern matching only; the results are written once at intake and read by
every later stage.
"""

import re

from specflow.lib.constants import TITLE_MAX_LEN

PRIORITY_BASE_SCORE = {"P0": 100, "P1": 75, "P2": 50, "P3": 25}
TYPE_BONUS = {"bug": 10, "feature": 5, "task": 0}

# First matching rule wins
TOPIC_RULES = [
    ("Auth", re.compile(r'auth|login|signin|signup|oauth|password|session')),
    ("Payments", re.compile(r'payment|stripe|invoice|commission|payout|billing')),
    ("Notifications", re.compile(r'email|notification|sms|alert|message')),
    ("Tasks Marketplace", re.compile(r'task|quote|bid|provider|customer|workflow')),
    ("Admin", re.compile(r'admin|moderation|dashboard|backoffice')),
    ("Performance", re.compile(r'performance|speed|cache|optimization|latency')),
    ("UI/UX", re.compile(r'ui|ux|design|layout|responsive|mobile|desktop')),
    ("Data", re.compile(r'database|supabase|migration|sql|schema|rls')),
    ("Infra", re.compile(r'deploy|vercel|ci|pipeline|build|lint|test|release')),
]
DEFAULT_TOPIC = "General"

_TASK_PREFIX = re.compile(r'^\s*(task|chore)\s*[:\-]')
_P2_TASK = re.compile(r'\bp2\s+task\b')
_BUG_WORDS = re.compile(r'\bbug\b|\bfix\b|erreur|failed|fails|broken|regression')
_FEATURE_PREFIX = re.compile(r'^\s*feature\s*[:\-]')
_FEATURE_WORDS = re.compile(r'\bfeature\b|nouvelle fonctionnalite|enhancement|ajouter')

_P0_WORDS = re.compile(r'\bp0\b|\bcritical\b|\bblocker\b|urgent|critique')
_P1_WORDS = re.compile(r'\bp1\b|\bhigh\b|important')
_P3_WORDS = re.compile(r'\bp3\b|\blow\b|nice to have')

_BULLET = re.compile(r'^[-*]|^\d+[.)]')
_BULLET_MARKER = re.compile(r'^[-*]\s+')
_NUMBER_MARKER = re.compile(r'^\d+[.)]\s+')


def detect_type(raw: str) -> str:
    lower = raw.lower()
    if _TASK_PREFIX.search(lower) or _P2_TASK.search(lower):
        return "task"
    if _BUG_WORDS.search(lower):
        return "bug"
    if _FEATURE_PREFIX.search(lower) or _FEATURE_WORDS.search(lower):
        return "feature"
    return "task"


def detect_priority(raw: str) -> str:
    lower = raw.lower()
    if _P0_WORDS.search(lower):
        return "P0"
    if _P1_WORDS.search(lower):
        return "P1"
    if _P3_WORDS.search(lower):
        return "P3"
    return "P2"


def detect_topic(raw: str) -> str:
    lower = raw.lower()
    for topic, pattern in TOPIC_RULES:
        if pattern.search(lower):
            return topic
    return DEFAULT_TOPIC


def priority_score(priority: str, issue_type: str) -> int:
    """Ordering score: priority base plus a small bonus for bugs and features."""
    return PRIORITY_BASE_SCORE.get(priority, PRIORITY_BASE_SCORE["P3"]) + TYPE_BONUS.get(issue_type, 0)


def to_sentence_case(text: str) -> str:
    trimmed = text.strip()
    if not trimmed:
        return "Untitled work item"
    return trimmed[0].upper() + trimmed[1:]


def format_title(raw: str) -> str:
    """Collapse whitespace, cap length, capitalize the first letter."""
    return to_sentence_case(re.sub(r'\s+', ' ', raw)[:TITLE_MAX_LEN])


def parse_input_items(text: str) -> list[str]:
    """Split raw input into one entry per work item.

    When the input holds at least two bullet or numbered lines, only those
    lines are items (the rest is treated as prose around the list). Markers
    are stripped.
    """
    lines = [line.strip() for line in text.replace("\r\n", "\n").split("\n")]
    lines = [line for line in lines if line]

    bullet_like = [line for line in lines if _BULLET.match(line)]
    source = bullet_like if len(bullet_like) >= 2 else lines

    return [_NUMBER_MARKER.sub("", _BULLET_MARKER.sub("", line)).strip() for line in source]
