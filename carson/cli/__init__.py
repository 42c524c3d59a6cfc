"""Command-line interface for the triage engine."""
