"""Signal Extractor: DETERMINISTIC only, no LLM calls.

Regex-based extraction of budget, move-in date and interest level from a
prospect's answer. Anything unparseable yields None for that field.
"""

import logging
import re
from datetime import date, datetime, timedelta, timezone

from propertypulse.domain.enums import QuestionType, ResponseMethod
from propertypulse.services.contracts import ExtractedSignals

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Budget patterns
# ---------------------------------------------------------------------------

MIN_BUDGET = 100
MAX_BUDGET = 100_000

_AMOUNT = r'(\d{1,3}(?:,\d{3})+|\d+(?:\.\d+)?)\s*(k)?'

# "$2,500", "$2.5k", "$1,500-$2,500"; relative amounts ("$100 less") are skipped
CURRENCY_PATTERN = re.compile(
    r'\$\s*' + _AMOUNT + r'\b(?!\s*(?:less|more|off|cheaper|lower|higher|below|above))',
    re.IGNORECASE,
)

# "2500/month", "2000 dollars", "2,400 per month", "3k a month"
PLAIN_AMOUNT_PATTERN = re.compile(
    r'\b' + _AMOUNT
    + r'\s*(?:dollars|bucks|/\s*mo(?:nth)?|(?:a|per)\s+month|monthly)\b',
    re.IGNORECASE,
)

# ---------------------------------------------------------------------------
# Move-in patterns
# ---------------------------------------------------------------------------

WORD_NUMBERS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11,
    "twelve": 12,
}
_NUMBER = r'(?:\d+|' + '|'.join(sorted(WORD_NUMBERS, key=len, reverse=True)) + r')'

UNIT_DAYS = {"day": 1, "week": 7, "month": 30}

IMMEDIATE_PATTERN = re.compile(
    r'\b(?:asap|a\.s\.a\.p|immediately|right away|right now|as soon as possible|this month)\b',
    re.IGNORECASE,
)
NEXT_PERIOD_PATTERN = re.compile(r'\bnext\s+(week|month)\b', re.IGNORECASE)

# "within 2 weeks", "in 3 months", "2-3 months" (lower bound), "3+ months"
RELATIVE_PATTERN = re.compile(
    r'(?:\b(within|in|about|around|after)\s+)?\b(' + _NUMBER + r')'
    r'(?:\s*(?:-|–|to)\s*' + _NUMBER + r')?\s*\+?\s*(day|week|month)s?\b',
    re.IGNORECASE,
)

ISO_DATE_PATTERN = re.compile(r'\b(\d{4})-(\d{1,2})-(\d{1,2})\b')
US_DATE_PATTERN = re.compile(r'\b(\d{1,2})/(\d{1,2})/(\d{4})\b')

# ---------------------------------------------------------------------------
# Interest patterns
# ---------------------------------------------------------------------------

# "8/10", "7 out of 10"; never the middle of a date such as "2/10/2026"
EXPLICIT_RATING_PATTERN = re.compile(
    r'(?<![\d/])\b(10|[1-9])\s*(?:/|out\s+of)\s*10\b(?!\s*/\s*\d)',
    re.IGNORECASE,
)
BARE_RATING_PATTERN = re.compile(r'^\s*(10|[1-9])\s*$')

# Negations are checked before any positive phrase
UNINTERESTED_PATTERN = re.compile(r'\b(?:un|dis)interested\b', re.IGNORECASE)
NEGATED_INTEREST_PATTERN = re.compile(
    r"\b(?:not|never|isn['’]t|aren['’]t|wasn['’]t|no\s+longer)\s+(?:(\w+)\s+)?interested\b",
    re.IGNORECASE,
)
# "not <softener> interested"; any other word in that slot scores 2
SOFTENED_NEGATIONS = {
    "very": 3,
    "that": 3,
    "too": 3,
    "so": 3,
    "super": 3,
    "really": 2,
    "all": 1,
}

# Checked in order; the first phrase found wins
INTEREST_PHRASES = [
    ("extremely interested", 10),
    ("very interested", 9),
    ("really interested", 9),
    ("somewhat interested", 5),
    ("maybe later", 4),
    ("interested", 7),
]
INTEREST_PHRASE_PATTERNS = [
    (re.compile(r'\b' + re.escape(phrase) + r'\b', re.IGNORECASE), level)
    for phrase, level in INTEREST_PHRASES
]

# Only meaningful as an answer to a rating question
RATING_WORDS = {
    "excellent": 9,
    "great": 8,
    "good": 7,
    "fair": 5,
    "okay": 5,
    "poor": 2,
}
RATING_WORD_PATTERN = re.compile(r'\b(' + '|'.join(RATING_WORDS) + r')\b', re.IGNORECASE)

EMOJI_RATINGS = {
    "😍": 10,
    "😊": 8,
    "🙂": 7,
    "🤔": 5,
    "😐": 4,
    "😕": 3,
    "😟": 3,
    "😞": 2,
}


# ---------------------------------------------------------------------------
# Field extractors
# ---------------------------------------------------------------------------


def _to_amount(number: str, thousands: str | None) -> float:
    value = float(number.replace(",", ""))
    if thousands:
        value *= 1000
    return value


def extract_budget(text: str) -> float | None:
    """Return the last currency-like figure stated in ``text``."""
    candidates = []
    for pattern in (CURRENCY_PATTERN, PLAIN_AMOUNT_PATTERN):
        for match in pattern.finditer(text):
            amount = _to_amount(match.group(1), match.group(2))
            if MIN_BUDGET <= amount <= MAX_BUDGET:
                candidates.append((match.start(), amount))
    if not candidates:
        return None
    candidates.sort()
    return candidates[-1][1]


def _parse_number(token: str) -> int:
    token = token.lower()
    if token in WORD_NUMBERS:
        return WORD_NUMBERS[token]
    return int(token)


def _explicit_date(text: str) -> date | None:
    match = ISO_DATE_PATTERN.search(text)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            pass
    match = US_DATE_PATTERN.search(text)
    if match:
        try:
            return date(int(match.group(3)), int(match.group(1)), int(match.group(2)))
        except ValueError:
            pass
    return None


def extract_move_in_date(
    text: str,
    now: datetime,
    question_type: QuestionType | None = None,
) -> date | None:
    """Turn an explicit date or a relative phrase into a concrete date."""
    explicit = _explicit_date(text)
    if explicit is not None:
        return explicit

    today = now.date()
    if IMMEDIATE_PATTERN.search(text):
        return today

    match = NEXT_PERIOD_PATTERN.search(text)
    if match:
        return today + timedelta(days=UNIT_DAYS[match.group(1).lower()])

    for match in RELATIVE_PATTERN.finditer(text):
        preposition, number, unit = match.group(1), match.group(2), match.group(3)
        # Bare durations ("12 month lease") only count when the question asked for timing
        if preposition is None and question_type != QuestionType.MOVE_IN_DATE:
            continue
        return today + timedelta(days=_parse_number(number) * UNIT_DAYS[unit.lower()])
    return None


def extract_interest_level(
    text: str,
    question_type: QuestionType | None = None,
) -> int | None:
    """Map explicit ratings or qualitative language onto a 1-10 scale."""
    match = EXPLICIT_RATING_PATTERN.search(text)
    if match:
        return int(match.group(1))

    if UNINTERESTED_PATTERN.search(text):
        return 1
    match = NEGATED_INTEREST_PATTERN.search(text)
    if match:
        softener = match.group(1)
        return SOFTENED_NEGATIONS.get(softener.lower(), 2) if softener else 1

    for pattern, level in INTEREST_PHRASE_PATTERNS:
        if pattern.search(text):
            return level

    if question_type != QuestionType.INTEREST_LEVEL:
        return None

    match = BARE_RATING_PATTERN.match(text)
    if match:
        return int(match.group(1))

    match = RATING_WORD_PATTERN.search(text)
    if match:
        return RATING_WORDS[match.group(1).lower()]

    for emoji, level in EMOJI_RATINGS.items():
        if emoji in text:
            return level
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_signals(
    response_value: str,
    response_text: str | None = None,
    question_type=None,
    now: datetime | None = None,
) -> ExtractedSignals:
    """Extract budget, move-in date and interest level from one answer.

    Never raises: a parsing failure is logged and yields empty signals.
    """
    now = now or datetime.now(timezone.utc)
    text = " ".join(part for part in (response_value, response_text) if part)
    if not text.strip():
        return ExtractedSignals()

    try:
        qtype = QuestionType(question_type) if question_type else None
    except ValueError:
        qtype = None

    try:
        return ExtractedSignals(
            budget=extract_budget(text),
            move_in_date=extract_move_in_date(text, now, qtype),
            interest_level=extract_interest_level(text, qtype),
        )
    except Exception as exc:
        logger.warning("Signal extraction failed for %.80r: %s", text, exc)
        return ExtractedSignals()


def resolve_preferred_method(current, method) -> str:
    """First answer sets the preference; later non-text answers overwrite it."""
    method = ResponseMethod(method)
    if current is None or method != ResponseMethod.TEXT:
        return method.value
    return current
