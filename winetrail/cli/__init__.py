"""Command line tools for WineTrail."""
