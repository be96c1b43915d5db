"""Unit tests for the deterministic signal extractor."""

from datetime import date, datetime, timezone

import pytest

from propertypulse.domain.enums import QuestionType, ResponseMethod
from propertypulse.services.signal_extractor import (
    extract_budget,
    extract_interest_level,
    extract_move_in_date,
    extract_signals,
    resolve_preferred_method,
)

NOW = datetime(2026, 3, 1, 15, 30, tzinfo=timezone.utc)
Q = QuestionType


# ---------------------------------------------------------------------------
# Budget
# ---------------------------------------------------------------------------


class TestBudget:

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("$2,500", 2500.0),
            ("around $2.5k", 2500.0),
            ("2500/month works", 2500.0),
            ("I can do 2000 dollars", 2000.0),
            ("1,800 per month max", 1800.0),
            ("$2500/month", 2500.0),
        ],
    )
    def test_currency_like_figures(self, text, expected):
        assert extract_budget(text) == expected

    def test_last_figure_wins(self):
        assert extract_budget("I'd pay $2,000 but ideally $1,800") == 1800.0

    def test_range_uses_last_figure(self):
        assert extract_budget("$1,500-$2,500") == 2500.0

    def test_relative_amount_ignored(self):
        assert extract_budget("$100 less") is None

    def test_out_of_range_ignored(self):
        assert extract_budget("$50") is None
        assert extract_budget("$250,000") is None

    def test_no_figure(self):
        assert extract_budget("I love the kitchen") is None


# ---------------------------------------------------------------------------
# Move-in date
# ---------------------------------------------------------------------------


class TestMoveInDate:

    @pytest.mark.parametrize("text", ["ASAP", "Immediately", "right away", "this month"])
    def test_immediate_phrases_are_today(self, text):
        assert extract_move_in_date(text, NOW) == date(2026, 3, 1)

    def test_within_weeks(self):
        assert extract_move_in_date("within 2 weeks", NOW) == date(2026, 3, 15)

    def test_in_months(self):
        assert extract_move_in_date("in 3 months", NOW) == date(2026, 5, 30)

    def test_word_number(self):
        assert extract_move_in_date("within two weeks", NOW) == date(2026, 3, 15)

    def test_range_uses_lower_bound(self):
        assert extract_move_in_date("Within 2-3 months", NOW) == date(2026, 4, 30)

    def test_next_month(self):
        assert extract_move_in_date("next month", NOW) == date(2026, 3, 31)

    def test_bare_duration_only_for_move_in_questions(self):
        assert extract_move_in_date("2-3 months", NOW) is None
        assert extract_move_in_date("2-3 months", NOW, Q.MOVE_IN_DATE) == date(2026, 4, 30)

    def test_lease_length_not_a_move_in(self):
        assert extract_move_in_date("I want a 12 month lease", NOW) is None

    def test_iso_date(self):
        assert extract_move_in_date("2026-06-15", NOW) == date(2026, 6, 15)

    def test_us_date(self):
        assert extract_move_in_date("06/15/2026", NOW) == date(2026, 6, 15)

    @pytest.mark.parametrize("text", ["Flexible", "Not ready to commit", "Very flexible"])
    def test_unparseable_is_none(self, text):
        assert extract_move_in_date(text, NOW, Q.MOVE_IN_DATE) is None


# ---------------------------------------------------------------------------
# Interest level
# ---------------------------------------------------------------------------


class TestInterestLevel:

    def test_explicit_ratings(self):
        assert extract_interest_level("I'd say 8/10") == 8
        assert extract_interest_level("7 out of 10") == 7

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Very interested", 9),
            ("I'm interested", 7),
            ("Somewhat interested", 5),
            ("Not interested", 1),
            ("Maybe later", 4),
        ],
    )
    def test_phrases(self, text, expected):
        assert extract_interest_level(text) == expected

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Honestly I'm not really interested in this one", 2),
            ("I'm uninterested", 1),
            ("Not that interested", 3),
            ("Not very interested", 3),
            ("Not interested at all", 1),
            ("We're no longer interested", 1),
            ("Never been interested in high-rises", 2),
        ],
    )
    def test_negations_score_low(self, text, expected):
        assert extract_interest_level(text) == expected

    def test_interested_needs_whole_word(self):
        assert extract_interest_level("Disinterested, thanks") == 1
        assert extract_interest_level("Interestedly browsing") is None

    @pytest.mark.parametrize("text", ["I could move in on 2/10/2026", "Maybe 12/10/2026?"])
    def test_dates_are_not_ratings(self, text):
        assert extract_interest_level(text) is None

    def test_dated_answer_keeps_interest_empty(self):
        signals = extract_signals("I could move in on 2/10/2026", None, "move_in_date")
        assert signals.move_in_date == date(2026, 2, 10)
        assert signals.interest_level is None

    def test_rating_words_need_rating_question(self):
        assert extract_interest_level("Excellent", Q.INTEREST_LEVEL) == 9
        assert extract_interest_level("Poor", Q.INTEREST_LEVEL) == 2
        assert extract_interest_level("Excellent") is None

    def test_emoji_needs_rating_question(self):
        assert extract_interest_level("😍", Q.INTEREST_LEVEL) == 10
        assert extract_interest_level("😞", Q.INTEREST_LEVEL) == 2
        assert extract_interest_level("😍") is None

    def test_bare_number_needs_rating_question(self):
        assert extract_interest_level("8", Q.INTEREST_LEVEL) == 8
        assert extract_interest_level("8") is None


# ---------------------------------------------------------------------------
# Combined
# ---------------------------------------------------------------------------


class TestExtractSignals:

    def test_combines_value_and_text(self):
        signals = extract_signals("Within 1 month", "budget is $2,200", "move_in_date", now=NOW)
        assert signals.budget == 2200.0
        assert signals.move_in_date == date(2026, 3, 31)
        assert signals.interest_level is None

    def test_blank_is_empty(self):
        assert extract_signals("   ", now=NOW).is_empty

    def test_unknown_question_type_tolerated(self):
        signals = extract_signals("8", question_type="bogus", now=NOW)
        assert signals.is_empty


class TestPreferredMethod:

    def test_first_response_sets_preference(self):
        assert resolve_preferred_method(None, "text") == "text"

    def test_text_does_not_overwrite(self):
        assert resolve_preferred_method("voice", ResponseMethod.TEXT) == "voice"

    def test_non_text_overwrites(self):
        assert resolve_preferred_method("text", "emoji") == "emoji"
        assert resolve_preferred_method("emoji", "dropdown") == "dropdown"
