"""Entry point: ``streamlit run streamlit_app.py``."""

from __future__ import annotations

from dealer_analytics.logging_utils import configure_logging
from frontend.app import main

configure_logging()
main()
