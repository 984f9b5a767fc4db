"""Document generators, one per output file."""
