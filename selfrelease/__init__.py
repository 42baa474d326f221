"""Publish a new release of a command-line tool to GitHub."""

__version__ = "0.1.0"
