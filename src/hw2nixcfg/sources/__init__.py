"""Input sources: hardware description files."""
