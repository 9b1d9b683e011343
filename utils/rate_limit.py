"""Session rate limiting for open Streamlit deployments."""

from __future__ import annotations

import os
import time

import streamlit as st
from streamlit.errors import StreamlitSecretNotFoundError

BYPASS_KEY = "rate_limit_bypass"
RECENT_RUNS_KEY = "recent_runs"
LAST_RUN_KEY = "last_rate_limit_ts"
PASSWORD_ENV_VAR = "EVSTATION_RATE_LIMIT_PASSWORD"
DEFAULT_PASSWORD = "evstation"


def get_rate_limit_password() -> str:
    """Return the bypass password: Streamlit secret, then env var, then default."""

    try:
        secret_password = st.secrets.get("rate_limit_password")
    except StreamlitSecretNotFoundError:
        secret_password = None

    return secret_password or os.environ.get(PASSWORD_ENV_VAR) or DEFAULT_PASSWORD


def apply_rate_limit_password(entered: str) -> bool:
    """Toggle the session bypass from a sidebar password entry.

    Returns whether the bypass is active after the check. An empty entry keeps
    the current state.
    """

    if entered:
        st.session_state[BYPASS_KEY] = entered == get_rate_limit_password()
    return bool(st.session_state.get(BYPASS_KEY, False))


def enforce_rate_limit(
    max_runs: int = 60,
    window_seconds: int = 600,
    min_spacing_seconds: float = 2.0,
) -> None:
    """Stop the script when the session exceeds ``max_runs`` per window.

    Reruns closer together than ``min_spacing_seconds`` count once, since a
    single click can trigger several Streamlit reruns.
    """
    if st.session_state.get(BYPASS_KEY, False):
        return

    now = time.time()
    recent = [t for t in st.session_state.get(RECENT_RUNS_KEY, []) if now - t < window_seconds]
    if len(recent) >= max_runs:
        wait_for = int(window_seconds - (now - min(recent)))
        st.error("Rate limit reached. Please wait a few minutes before running more simulations.")
        st.info(f"You can retry in approximately {max(wait_for, 1)} seconds.")
        st.stop()

    last_recorded = st.session_state.get(LAST_RUN_KEY)
    if last_recorded is None or now - last_recorded >= min_spacing_seconds:
        recent.append(now)
        st.session_state[LAST_RUN_KEY] = now

    st.session_state[RECENT_RUNS_KEY] = recent
