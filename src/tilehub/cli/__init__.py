"""Command-line interface (``tilehub``)."""
