"""Command-line interface for app-auth."""
