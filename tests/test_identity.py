import pytest

from shopsmart.services.identity import (
    SESSION_ID_KEY,
    USER_ID_KEY,
    Principal,
    end_user_session,
    resolve_principal,
    start_user_session,
)


def test_guest_gets_a_stable_session_id():
    state = {}

    first = resolve_principal(state)
    second = resolve_principal(state)

    assert not first.is_authenticated
    assert first.session_id == state[SESSION_ID_KEY]
    assert second == first
    assert len(first.session_id) == 64


def test_logged_in_session_resolves_to_user():
    principal = resolve_principal({SESSION_ID_KEY: "abc", USER_ID_KEY: 42})

    assert principal == Principal.authenticated(42)
    assert principal.owner_values() == {"user_id": 42, "session_id": None}


def test_principal_holds_exactly_one_identity():
    with pytest.raises(ValueError):
        Principal()
    with pytest.raises(ValueError):
        Principal(user_id=1, session_id="abc")

    assert Principal.anonymous("abc").owner_values() == {"user_id": None, "session_id": "abc"}


def test_start_user_session_rotates_the_id():
    state = {SESSION_ID_KEY: "guest-sid", "stale": True}

    sid = start_user_session(state, {"user_id": 7, "email": "a@example.com", "full_name": "A"})

    assert sid != "guest-sid"
    assert state[SESSION_ID_KEY] == sid
    assert "stale" not in state
    assert resolve_principal(state) == Principal.authenticated(7)


def test_start_user_session_binds_a_pre_minted_id():
    state = {SESSION_ID_KEY: "guest-sid"}

    sid = start_user_session(state, {"user_id": 3, "email": "b@example.com", "full_name": "B"}, "minted")

    assert sid == "minted"
    assert state == {
        SESSION_ID_KEY: "minted",
        USER_ID_KEY: 3,
        "user_email": "b@example.com",
        "user_name": "B",
    }


def test_end_user_session_returns_to_guest():
    state = {SESSION_ID_KEY: "sid", USER_ID_KEY: 7}

    sid = end_user_session(state)

    assert resolve_principal(state) == Principal.anonymous(sid)
    assert sid != "sid"
