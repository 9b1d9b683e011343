"""Simulation page that reuses the main workspace defined in ``app.py``.

Streamlit executes each page as a standalone script, so the page imports the
shared ``run_app`` entry point instead of duplicating the layout.
"""

from app import run_app

run_app()
