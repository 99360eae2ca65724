from dataclasses import dataclass
from typing import MutableMapping, Optional

from shopsmart.core.security import generate_token

USER_ID_KEY = "user_id"
SESSION_ID_KEY = "sid"


@dataclass(frozen=True)
class Principal:
    """The acting identity of a request: a logged-in user or a guest session, never both."""

    user_id: Optional[int] = None
    session_id: Optional[str] = None

    def __post_init__(self):
        if (self.user_id is None) == (self.session_id is None):
            raise ValueError("Principal needs exactly one of user_id or session_id")

    @classmethod
    def authenticated(cls, user_id: int) -> "Principal":
        return cls(user_id=user_id)

    @classmethod
    def anonymous(cls, session_id: str) -> "Principal":
        return cls(session_id=session_id)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def owner_values(self) -> dict:
        """Column values identifying this principal on an owned row."""
        if self.is_authenticated:
            return {"user_id": self.user_id, "session_id": None}
        return {"user_id": None, "session_id": self.session_id}


def new_session_id() -> str:
    return generate_token(32)


def ensure_session_id(session_state: MutableMapping) -> str:
    sid = session_state.get(SESSION_ID_KEY)
    if not sid:
        sid = new_session_id()
        session_state[SESSION_ID_KEY] = sid
    return sid


def resolve_principal(session_state: MutableMapping) -> Principal:
    """Authenticated when the session carries a user id, anonymous otherwise."""
    sid = ensure_session_id(session_state)
    user_id = session_state.get(USER_ID_KEY)
    if user_id is not None:
        return Principal.authenticated(int(user_id))
    return Principal.anonymous(sid)


def start_user_session(session_state: MutableMapping, user: dict, sid: str = None) -> str:
    """Replace whatever the session held with a fresh id bound to ``user``."""
    session_state.clear()
    sid = sid or new_session_id()
    session_state[SESSION_ID_KEY] = sid
    session_state[USER_ID_KEY] = user["user_id"]
    session_state["user_email"] = user["email"]
    session_state["user_name"] = user["full_name"]
    return sid


def end_user_session(session_state: MutableMapping) -> str:
    session_state.clear()
    return ensure_session_id(session_state)
