"""Command-line interface for gitrunner."""
