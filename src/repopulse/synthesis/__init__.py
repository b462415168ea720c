"""Synthesis stage: turn aggregates and health scores into recommendations."""

from repopulse.synthesis.recommendations import generate_recommendations

__all__ = ["generate_recommendations"]
