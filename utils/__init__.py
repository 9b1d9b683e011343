"""Utility helpers shared by the engine, the API and the Streamlit pages.

Streamlit-bound helpers (``utils.rate_limit``) are imported directly by the
pages so the engine and the API do not pull in the UI runtime.
"""

from utils.io import read_override_table
from utils.recommendations import generate_recommendations

__all__ = [
    "generate_recommendations",
    "read_override_table",
]
