"""
frontend/auth.py
Session-held login state for the listings frontend.

Streamlit reruns the script top to bottom on each interaction; the token and
the user record returned by /auth/login or /auth/signup are kept in
st.session_state between reruns.
"""

from typing import Any, Dict, Optional

import streamlit as st

TOKEN_KEY = "auth_token"
USER_KEY = "current_user"

AGENT_ROLES = ("Agent", "Admin")


def init_auth_state() -> None:
    for key in (TOKEN_KEY, USER_KEY):
        st.session_state.setdefault(key, None)


def set_auth(auth_token: str, current_user: Dict[str, Any]) -> None:
    """Remember the JWT and the backend's user object (id, email, role, names)."""
    st.session_state[TOKEN_KEY] = auth_token
    st.session_state[USER_KEY] = current_user


def clear_auth() -> None:
    for key in (TOKEN_KEY, USER_KEY):
        st.session_state[key] = None


def is_authenticated() -> bool:
    return bool(st.session_state.get(TOKEN_KEY))


def get_current_user() -> Optional[Dict[str, Any]]:
    user = st.session_state.get(USER_KEY)
    return user if isinstance(user, dict) else None


def get_role() -> Optional[str]:
    return (get_current_user() or {}).get("role")


def is_agent() -> bool:
    return get_role() in AGENT_ROLES


def get_auth_header() -> Dict[str, str]:
    token = st.session_state.get(TOKEN_KEY)
    return {"Authorization": f"Bearer {token}"} if token else {}


def require_auth() -> bool:
    """Page guard: shows a login prompt and returns False when signed out."""
    if is_authenticated():
        return True
    st.warning("Please log in to continue.")
    if st.button("Log in", type="primary"):
        st.session_state["nav_page"] = "Login"
        st.rerun()
    return False
