"""Streamlit front end for the dealership analytics client."""
