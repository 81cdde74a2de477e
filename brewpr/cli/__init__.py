"""Command-line surface for brewpr."""
