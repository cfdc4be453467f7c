# This project was developed with assistance from AI tools.
"""Handover workflow engine: document readiness, signatures, and batch job tracking."""
