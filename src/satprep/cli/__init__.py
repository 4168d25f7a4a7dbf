"""Command-line interface for satprep."""
