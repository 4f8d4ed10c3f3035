"""Capability catalog data layer, CLI and Streamlit browser."""
