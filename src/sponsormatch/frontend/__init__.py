"""Textual dashboards for brands, creators and influencers."""
