"""Résumé-to-job matching, applicant ranking and AI drafting helpers."""

__version__ = "0.1.0"
