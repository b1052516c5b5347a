"""Clause extraction from free-text automation descriptions."""
from __future__ import annotations

import re
from typing import Callable, Pattern

from .types import Clause, ClauseKind, ExtractionResult, Schedule

ClauseExtractor = Callable[[re.Match], str]


def _first_group(match: re.Match) -> str:
    return match.group(1).strip()


# (pattern, extractor) pairs, evaluated in declared order against lowercased text.
TRIGGER_PATTERNS: tuple[tuple[Pattern[str], ClauseExtractor], ...] = (
    (re.compile(r"\bwhen\s+(.+?)(?:\s+then\b|,)"), _first_group),
    (re.compile(r"\btrigger(?:ed)?\s+(?:by|on|when)\s+(.+?)(?:\s+then\b|,|$)"), _first_group),
    (re.compile(r"\bstarts?\s+(?:with|when|on)\s+(.+?)(?:\s+then\b|,|$)"), _first_group),
    (re.compile(r"\bwatch(?:es)?\s+(?:for\s+)?(.+?)(?:\s+then\b|,|$)"), _first_group),
    (re.compile(r"\bmonitors?\s+(.+?)(?:\s+then\b|,|$)"), _first_group),
)

CONDITION_PATTERNS: tuple[tuple[Pattern[str], ClauseExtractor], ...] = (
    (re.compile(r"\bif\s+(.+?)\s+then\b"), _first_group),
    (re.compile(r"\bwhen\s+(.+?)\s+(?:is|equals|contains)\b"), _first_group),
    (re.compile(r"\bchecks?\s+(?:if|whether)\s+(.+)"), _first_group),
)

ACTION_CONNECTIVES: tuple[str, ...] = (r"\s+then\s+", r"\s+and\s+", r",")

# Ordered: the first service with any keyword contained in the text wins.
# "mail" inside "gmail" therefore resolves to email, and mailchimp is listed
# before email so that its name is not swallowed by the "mail" keyword.
SERVICE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("slack", ("slack", "channel", "message to slack")),
    ("google-sheets", ("google sheets", "spreadsheet", "sheet", "gsheet")),
    ("mailchimp", ("mailchimp", "newsletter")),
    ("email", ("email", "mail", "smtp")),
    ("http", ("api", "webhook", "http", "request")),
    ("openai", ("openai", "chatgpt", "gpt", "use ai", "using ai", "with ai", "ai model")),
    ("airtable", ("airtable", "base")),
    ("notion", ("notion", "page")),
    ("shopify", ("shopify", "order", "product")),
    ("stripe", ("stripe", "payment", "charge")),
    ("github", ("github", "issue", "pull request")),
    ("trello", ("trello", "card", "board")),
    ("discord", ("discord",)),
    ("twilio", ("sms", "text message", "twilio")),
    ("sendgrid", ("sendgrid",)),
    ("hubspot", ("hubspot", "contact", "deal")),
    ("salesforce", ("salesforce", "lead", "opportunity")),
)

_CONDITION_LEAD = re.compile(r"^(?:if|when|check)\b")
_CONNECTIVE_SPLIT = re.compile("|".join(ACTION_CONNECTIVES), re.IGNORECASE)
_WORD = re.compile(r"\w")
_SEGMENT_PUNCTUATION = " .;:!?"

_UNIT_SECONDS = {"minute": 60, "hour": 3600, "day": 86400, "week": 604800}
_SCHEDULE_PATTERNS: tuple[tuple[Pattern[str], Callable[[re.Match], int]], ...] = (
    (
        re.compile(r"\bevery\s+(\d+)\s+(minute|hour|day|week)s?\b"),
        lambda m: int(m.group(1)) * _UNIT_SECONDS[m.group(2)],
    ),
    (re.compile(r"\bevery\s+(minute|hour|day|week)\b"), lambda m: _UNIT_SECONDS[m.group(1)]),
    (re.compile(r"\bhourly\b"), lambda m: _UNIT_SECONDS["hour"]),
    (re.compile(r"\bdaily\b"), lambda m: _UNIT_SECONDS["day"]),
    (re.compile(r"\bweekly\b"), lambda m: _UNIT_SECONDS["week"]),
)


def normalize(text: str) -> str:
    return " ".join(text.split()).lower()


def detect_service(text: str) -> str | None:
    lowered = text.lower()
    for service, keywords in SERVICE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return service
    return None


def extract_trigger(text: str) -> Clause | None:
    normalized = normalize(text)
    for pattern, extractor in TRIGGER_PATTERNS:
        match = pattern.search(normalized)
        if match:
            span = extractor(match)
            return Clause(kind=ClauseKind.trigger, text=span, service=detect_service(span))
    return None


def extract_actions(text: str, *, has_trigger: bool | None = None) -> list[Clause]:
    normalized = normalize(text)
    if has_trigger is None:
        has_trigger = extract_trigger(normalized) is not None
    segments = _CONNECTIVE_SPLIT.split(normalized)
    if has_trigger:
        segments = segments[1:]

    actions: list[Clause] = []
    for segment in segments:
        part = segment.strip(_SEGMENT_PUNCTUATION)
        if not part or _CONDITION_LEAD.match(part):
            continue
        actions.append(Clause(kind=ClauseKind.action, text=part, service=detect_service(part)))
    return actions


def extract_conditions(text: str) -> list[Clause]:
    """Collect every match of every condition pattern, in pattern order."""
    normalized = normalize(text)
    conditions: list[Clause] = []
    for pattern, extractor in CONDITION_PATTERNS:
        for match in pattern.finditer(normalized):
            span = extractor(match)
            conditions.append(Clause(kind=ClauseKind.condition, text=span, service=detect_service(span)))
    return conditions


def extract_schedule(text: str) -> Schedule | None:
    normalized = normalize(text)
    for pattern, to_seconds in _SCHEDULE_PATTERNS:
        match = pattern.search(normalized)
        if match:
            interval = to_seconds(match)
            if interval > 0:
                return Schedule(interval=interval)
    return None


def extract(text: str) -> ExtractionResult:
    if not _WORD.search(text or ""):
        return ExtractionResult(trigger=None, actions=[], conditions=[], is_blank=True)
    normalized = normalize(text)
    trigger = extract_trigger(normalized)
    return ExtractionResult(
        trigger=trigger,
        actions=extract_actions(normalized, has_trigger=trigger is not None),
        conditions=extract_conditions(normalized),
        schedule=extract_schedule(normalized),
    )


def derive_name(description: str, word_limit: int = 5, default: str = "Generated Scenario") -> str:
    words = description.split()[:word_limit]
    name = re.sub(r"[^A-Za-z0-9\s]", "", " ".join(words))
    name = " ".join(name.split())
    return name or default


__all__ = [
    "ACTION_CONNECTIVES",
    "CONDITION_PATTERNS",
    "SERVICE_KEYWORDS",
    "TRIGGER_PATTERNS",
    "derive_name",
    "detect_service",
    "extract",
    "extract_actions",
    "extract_conditions",
    "extract_schedule",
    "extract_trigger",
    "normalize",
]
