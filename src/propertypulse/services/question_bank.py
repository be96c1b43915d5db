"""Question bank: fixed questionnaires, follow-up questions, fallback copy.

Tone: friendly leasing agent checking in with a prospective renter.
"""

from propertypulse.domain.enums import SessionType
from propertypulse.domain.schemas import Question

DISCOVERY_QUESTIONS = [
    {
        "id": "discovery_property_type",
        "text": "What type of property are you looking for?",
        "type": "multiple_choice",
        "options": ["Studio", "1 Bedroom", "2 Bedroom", "3+ Bedroom", "House", "Condo"],
        "emoji_options": ["🏠", "🏢", "🏡", "🏘️"],
    },
    {
        "id": "discovery_move_in",
        "text": "When are you hoping to move in?",
        "type": "move_in_date",
        "options": ["Immediately", "Within 1 month", "Within 2-3 months", "3+ months", "Flexible"],
        "emoji_options": ["🚀", "📅", "⏰", "🔄"],
    },
    {
        "id": "discovery_budget",
        "text": "What's your budget range for monthly rent?",
        "type": "budget",
        "options": ["Under $1,500", "$1,500-$2,500", "$2,500-$3,500", "$3,500+", "Flexible"],
        "emoji_options": ["💵", "💰", "💳", "🏦"],
    },
    {
        "id": "discovery_amenities",
        "text": "What amenities are most important to you?",
        "type": "multiple_choice",
        "options": ["Parking", "Pet-friendly", "Gym/Fitness", "Pool", "In-unit laundry", "Balcony/Patio"],
        "emoji_options": ["🅿️", "🐕", "🏋️", "🏊", "🧺", "🌿"],
    },
    {
        "id": "discovery_tour_interest",
        "text": "How interested are you in scheduling a tour?",
        "type": "interest_level",
        "options": ["Very interested", "Somewhat interested", "Maybe later", "Not interested"],
        "emoji_options": ["😍", "🙂", "🤔", "😐"],
    },
]

POST_TOUR_QUESTIONS = [
    {
        "id": "post_tour_experience",
        "text": "How would you rate your overall tour experience?",
        "type": "interest_level",
        "options": ["Excellent", "Good", "Fair", "Poor"],
        "emoji_options": ["😍", "😊", "😐", "😞"],
    },
    {
        "id": "post_tour_liked_most",
        "text": "What did you like most about the property?",
        "type": "open",
        "emoji_options": ["✨", "🏠", "🌟", "👍"],
    },
    {
        "id": "post_tour_concerns",
        "text": "Is there anything that concerns you about this property?",
        "type": "open",
        "emoji_options": ["🤔", "😟", "❓", "💭"],
    },
    {
        "id": "post_tour_fair_rent",
        "text": "Based on what you saw, what rent would you consider fair for this unit?",
        "type": "budget",
        "options": ["As listed", "10% less", "15% less", "20% less", "Would need significant reduction"],
        "emoji_options": ["💰", "💵", "💳", "🤷"],
    },
    {
        "id": "post_tour_move_in",
        "text": "If you were to move forward, when would be your ideal move-in date?",
        "type": "move_in_date",
        "options": ["Immediately", "Within 2 weeks", "Within 1 month", "1-2 months", "Not ready to commit"],
        "emoji_options": ["🚀", "📅", "⏰", "🤷"],
    },
]

FOLLOWUP_QUESTIONS = {
    "unclear_interest_budget": {
        "id": "followup_budget",
        "text": "What monthly rent amount would make you more interested in this property?",
        "type": "budget",
        "options": ["$100 less", "$200 less", "$300+ less", "Price isn't the main issue"],
        "emoji_options": ["💰", "💵", "💳", "🤷"],
    },
    "missing_timeline": {
        "id": "followup_timeline",
        "text": "When would you realistically be able to move in?",
        "type": "move_in_date",
        "options": ["This month", "Next month", "2-3 months", "More than 3 months", "Very flexible"],
        "emoji_options": ["🚀", "📅", "⏰", "🔄"],
    },
}

# Opening question used when the AI generator cannot produce one
FALLBACK_OPENERS = {
    SessionType.DISCOVERY: {
        "id": "initial_needs",
        "text": (
            "Hi! I'd love to learn more about what you're looking for in your next home. "
            "Could you tell me about your ideal living situation?"
        ),
        "type": "open",
    },
    SessionType.POST_TOUR: {
        "id": "tour_impression",
        "text": "Thanks for touring with us today! What were your first impressions of the property?",
        "type": "open",
        "emoji_options": ["😍", "😊", "😐", "😕"],
    },
}

COMPLETION_SUMMARY = "Thank you for your responses! We'll follow up with you soon."
FALLBACK_SUMMARY = "Thank you for your feedback!"


def fixed_questions(session_type) -> list[Question]:
    """Return the fixed questionnaire for a session type, in bank order."""
    bank = DISCOVERY_QUESTIONS if SessionType(session_type) == SessionType.DISCOVERY else POST_TOUR_QUESTIONS
    return [Question.model_validate(q) for q in bank]


def followup_question(rule_name: str) -> Question:
    return Question.model_validate(FOLLOWUP_QUESTIONS[rule_name])


def fallback_opener(session_type) -> Question:
    return Question.model_validate(FALLBACK_OPENERS[SessionType(session_type)])
