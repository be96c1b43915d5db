"""Follow-up rules: deterministic keyword checks over recorded answers.

Used by fixed-bank sessions once the bank is exhausted. Each rule appends
at most one question per session; fired rule names are persisted on the
session so a re-scan never appends twice.
"""

from propertypulse.domain.schemas import Question
from propertypulse.services.question_bank import followup_question

MIN_QUESTIONS_BEFORE_FOLLOWUP = 5

UNCLEAR_INTEREST_KEYWORDS = ("maybe", "not sure", "somewhat", "think about")
PRICING_KEYWORDS = ("$", "price", "rent", "budget")
TIMELINE_KEYWORDS = ("month", "week", "immediately", "date")


def _mentions(texts: list[str], keywords) -> bool:
    return any(keyword in text for text in texts for keyword in keywords)


def _unclear_interest_budget(texts: list[str]) -> bool:
    return _mentions(texts, UNCLEAR_INTEREST_KEYWORDS) and not _mentions(texts, PRICING_KEYWORDS)


def _missing_timeline(texts: list[str]) -> bool:
    return not _mentions(texts, TIMELINE_KEYWORDS)


# Evaluation order is the order follow-ups are appended
RULES = {
    "unclear_interest_budget": _unclear_interest_budget,
    "missing_timeline": _missing_timeline,
}


def response_texts(responses) -> list[str]:
    """Lower-cased value + elaboration text of each recorded response."""
    texts = []
    for response in responses:
        parts = [response.response_value or "", response.response_text or ""]
        texts.append(" ".join(p for p in parts if p).lower())
    return texts


def plan_followups(
    responses,
    already_fired,
) -> list[tuple[str, Question]]:
    """Return (rule_name, question) pairs for rules that fire now.

    Rules listed in ``already_fired`` are skipped. Nothing fires before
    MIN_QUESTIONS_BEFORE_FOLLOWUP responses have been recorded.
    """
    if len(responses) < MIN_QUESTIONS_BEFORE_FOLLOWUP:
        return []

    texts = response_texts(responses)
    fired = set(already_fired or [])
    planned = []
    for name, rule in RULES.items():
        if name in fired:
            continue
        if rule(texts):
            planned.append((name, followup_question(name)))
    return planned
