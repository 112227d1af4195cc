"""In-memory per-chat state: onboarding sessions, conversation flags and AI context.

Nothing here is persisted; a process restart starts every chat from scratch.
One store object of each kind is built at startup and handed to the router.
"""
import dataclasses
import logging
import time
from enum import Enum
from typing import Dict, List, Optional, Union

from .errors import SessionNotFound

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    INITIAL = "initial"
    AUTHENTICATING = "authenticating"
    ONBOARDING = "onboarding"
    ONBOARDING_COMPLETE = "onboarding_complete"


class OnboardingField(str, Enum):
    COMPANY_NAME = "companyName"
    LINKEDIN_URL = "linkedInURL"
    HEADQUARTERS = "headquarters"
    LOGO = "logo"
    WEBSITE = "website"
    INDUSTRY = "industry"
    BUSINESS_GOAL = "businessGoal"
    PARTNER_TYPE = "partnerType"
    COMPANY_SIZE = "companySize"
    PRODUCTS = "products"
    REGIONS = "regions"
    BUSINESS_STAGE = "businessStage"
    COLLABORATION_INTERESTS = "collaborationInterests"


FieldValue = Union[str, List[str]]


@dataclasses.dataclass
class Session:
    user_id: str
    chat_id: int
    state: SessionState = SessionState.INITIAL
    current_field: Optional[OnboardingField] = None
    onboarding_data: Dict[str, FieldValue] = dataclasses.field(default_factory=dict)
    is_authenticated: bool = False


@dataclasses.dataclass
class UserState:
    last_command: Optional[str] = None
    last_intent: Optional[str] = None
    conversation_stage: Optional[str] = None
    expecting_company_name: bool = False
    expecting_confirmation: bool = False
    selected_company: Optional[str] = None


def user_id_for(chat_id: int) -> str:
    return f"telegram:{chat_id}"


class SessionStore:
    """Onboarding sessions keyed by user id. Entries are never evicted."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, user_id):
        return user_id in self._sessions

    def get(self, user_id: str) -> Optional[Session]:
        return self._sessions.get(user_id)

    def get_or_create(self, user_id: str, chat_id: int) -> Session:
        session = self._sessions.get(user_id)
        if session is None:
            session = Session(user_id=user_id, chat_id=chat_id)
            self._sessions[user_id] = session
            logger.debug("Created session for %s", user_id)
        return session

    def update(self, user_id: str, **patch) -> Session:
        """Shallow-merge `patch` into the stored session and return the new value."""
        session = self._sessions.get(user_id)
        if session is None:
            raise SessionNotFound(user_id)
        updated = dataclasses.replace(session, **patch)
        self._sessions[user_id] = updated
        return updated

    def clear(self, user_id: str) -> None:
        self._sessions.pop(user_id, None)


class UserStateStore:
    """Conversation flags keyed by chat id; each transition replaces the whole record."""

    def __init__(self):
        self._states: Dict[int, UserState] = {}

    def get(self, chat_id: int) -> UserState:
        return self._states.get(chat_id) or UserState()

    def set(self, chat_id: int, state: UserState) -> UserState:
        self._states[chat_id] = state
        return state

    def clear(self, chat_id: int) -> None:
        self._states.pop(chat_id, None)


class ContextStore:
    """Recent conversation turns per chat, forwarded to the agent endpoint.

    Entries idle for longer than `idle_timeout` seconds are dropped by
    `evict_idle`, which the transport runs every `EVICT_INTERVAL` seconds.
    """

    MAX_TURNS = 10
    EVICT_INTERVAL = 30 * 60

    def __init__(self, idle_timeout: float = 60 * 60, clock=time.monotonic):
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._turns: Dict[int, List[dict]] = {}
        self._last_interaction: Dict[int, float] = {}

    def __len__(self):
        return len(self._turns)

    def append(self, chat_id: int, role: str, content: str) -> None:
        turns = self._turns.setdefault(chat_id, [])
        turns.append({"role": role, "content": content})
        if len(turns) > self.MAX_TURNS:
            del turns[: len(turns) - self.MAX_TURNS]
        self._last_interaction[chat_id] = self._clock()

    def recent(self, chat_id: int, n: int = 5) -> List[dict]:
        return list(self._turns.get(chat_id, [])[-n:])

    def clear(self, chat_id: int) -> None:
        self._turns.pop(chat_id, None)
        self._last_interaction.pop(chat_id, None)

    def evict_idle(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        stale = [cid for cid, ts in self._last_interaction.items() if now - ts > self.idle_timeout]
        for chat_id in stale:
            self.clear(chat_id)
            logger.info("Session %s cleaned up due to inactivity", chat_id)
        return len(stale)


__all__ = [
    "SessionState",
    "OnboardingField",
    "Session",
    "UserState",
    "SessionStore",
    "UserStateStore",
    "ContextStore",
    "user_id_for",
]
