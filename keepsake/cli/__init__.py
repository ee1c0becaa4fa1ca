"""Command-line interface for running headless Keepsake sessions."""
