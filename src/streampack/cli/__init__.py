"""Command-line tools for streampack."""
