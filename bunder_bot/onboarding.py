"""Company profile onboarding: a fixed, linear sequence of fields collected one message at a time."""
import logging
from typing import List, Optional
from urllib.parse import urlparse

from .errors import FieldValidationError
from .sessions import FieldValue, OnboardingField, Session, SessionState, SessionStore

logger = logging.getLogger(__name__)

FIELD_ORDER: List[OnboardingField] = [
    OnboardingField.COMPANY_NAME,
    OnboardingField.LINKEDIN_URL,
    OnboardingField.HEADQUARTERS,
    OnboardingField.LOGO,
    OnboardingField.WEBSITE,
    OnboardingField.INDUSTRY,
    OnboardingField.BUSINESS_GOAL,
    OnboardingField.PARTNER_TYPE,
    OnboardingField.COMPANY_SIZE,
    OnboardingField.PRODUCTS,
    OnboardingField.REGIONS,
    OnboardingField.BUSINESS_STAGE,
    OnboardingField.COLLABORATION_INTERESTS,
]

FIELD_PROMPTS = {
    OnboardingField.COMPANY_NAME: "Please enter your company name:",
    OnboardingField.LINKEDIN_URL: "Please enter your company's LinkedIn URL:",
    OnboardingField.HEADQUARTERS: "Where is your company headquartered?",
    OnboardingField.LOGO: "Please provide a URL to your company logo (or send '-' to skip):",
    OnboardingField.WEBSITE: "What is your company's website URL?",
    OnboardingField.INDUSTRY: "What industry does your company operate in?",
    OnboardingField.BUSINESS_GOAL: "What are your primary business goals?",
    OnboardingField.PARTNER_TYPE: "What type of partners are you looking for?",
    OnboardingField.COMPANY_SIZE: "What is the size of your company (number of employees)?",
    OnboardingField.PRODUCTS: "Please describe your main products or services:",
    OnboardingField.REGIONS: "Which regions do you operate in? (You can list multiple regions, separated by commas)",
    OnboardingField.BUSINESS_STAGE: "What stage is your business in? (e.g., startup, growth, mature)",
    OnboardingField.COLLABORATION_INTERESTS: "What are your collaboration interests? (You can list multiple interests, separated by commas)",
}

FIELD_LABELS = {
    OnboardingField.COMPANY_NAME: "Company",
    OnboardingField.LINKEDIN_URL: "LinkedIn",
    OnboardingField.HEADQUARTERS: "Headquarters",
    OnboardingField.LOGO: "Logo",
    OnboardingField.WEBSITE: "Website",
    OnboardingField.INDUSTRY: "Industry",
    OnboardingField.BUSINESS_GOAL: "Business goal",
    OnboardingField.PARTNER_TYPE: "Partner type",
    OnboardingField.COMPANY_SIZE: "Company size",
    OnboardingField.PRODUCTS: "Products",
    OnboardingField.REGIONS: "Regions",
    OnboardingField.BUSINESS_STAGE: "Business stage",
    OnboardingField.COLLABORATION_INTERESTS: "Collaboration interests",
}

_LIST_FIELDS = (OnboardingField.REGIONS, OnboardingField.COLLABORATION_INTERESTS)
_URL_FIELDS = (OnboardingField.LINKEDIN_URL, OnboardingField.WEBSITE)
_SKIP_WORDS = ("-", "skip", "geç", "gec")

COMPLETE_MESSAGE = "Thank you! Your onboarding is complete. Use /profile to review what you entered."


def next_field(current: Optional[OnboardingField] = None) -> Optional[OnboardingField]:
    if current is None:
        return FIELD_ORDER[0]
    try:
        idx = FIELD_ORDER.index(current)
    except ValueError:
        return None
    if idx == len(FIELD_ORDER) - 1:
        return None
    return FIELD_ORDER[idx + 1]


def field_prompt(field: OnboardingField) -> str:
    return FIELD_PROMPTS.get(field) or f"Please provide your {field.value}:"


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def parse_field(field: OnboardingField, raw: str) -> FieldValue:
    """Validate one answer and convert it to the stored value."""
    value = (raw or "").strip()

    if field == OnboardingField.LOGO:
        if value.lower() in _SKIP_WORDS:
            return ""
        if value and not _is_url(value):
            raise FieldValidationError("Please provide a valid logo URL, or '-' to skip")
        return value

    if field in _LIST_FIELDS:
        items = [item.strip() for item in value.split(",") if item.strip()]
        if not items:
            label = "region" if field == OnboardingField.REGIONS else "collaboration interest"
            raise FieldValidationError(f"At least one {label} is required")
        return items

    if not value:
        raise FieldValidationError(f"{FIELD_LABELS[field]} is required")

    if field in _URL_FIELDS and not _is_url(value):
        name = "LinkedIn" if field == OnboardingField.LINKEDIN_URL else "website"
        raise FieldValidationError(f"Please provide a valid {name} URL")

    return value


def start(store: SessionStore, user_id: str, chat_id: int) -> str:
    store.get_or_create(user_id, chat_id)
    first = next_field()
    store.update(user_id, state=SessionState.ONBOARDING, current_field=first, onboarding_data={})
    logger.info("Onboarding started for %s", user_id)
    return field_prompt(first)


def process(store: SessionStore, user_id: str, text: str) -> str:
    """Store the answer for the session's current field and return the next prompt."""
    session = store.get(user_id)
    if session is None or session.state != SessionState.ONBOARDING or session.current_field is None:
        return "Onboarding is not active. Start it with /onboard."

    field = session.current_field
    try:
        value = parse_field(field, text)
    except FieldValidationError as e:
        return f"Invalid input: {e}\n\nPlease try again.\n{field_prompt(field)}"

    data = dict(session.onboarding_data)
    data[field.value] = value
    following = next_field(field)

    if following is None:
        store.update(
            user_id,
            onboarding_data=data,
            state=SessionState.ONBOARDING_COMPLETE,
            current_field=None,
        )
        logger.info("Onboarding complete for %s", user_id)
        return COMPLETE_MESSAGE

    store.update(user_id, onboarding_data=data, current_field=following)
    return field_prompt(following)


def summary(session: Optional[Session]) -> str:
    if session is None or not session.onboarding_data:
        return "No profile on file. Start with /onboard."
    lines = []
    for field in FIELD_ORDER:
        value = session.onboarding_data.get(field.value)
        if value is None:
            continue
        if isinstance(value, list):
            value = ", ".join(value)
        lines.append(f"{FIELD_LABELS[field]}: {value or '-'}")
    if session.state == SessionState.ONBOARDING and session.current_field is not None:
        lines.append(f"\n(Onboarding in progress: next is {FIELD_LABELS[session.current_field]})")
    return "\n".join(lines)


__all__ = [
    "FIELD_ORDER",
    "FIELD_PROMPTS",
    "next_field",
    "field_prompt",
    "parse_field",
    "start",
    "process",
    "summary",
]
