"""Forumops -- operator tooling for the forum service monitoring stack."""

__version__ = "0.3.0"
