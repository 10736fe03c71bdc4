"""Tutorlink backend package."""
