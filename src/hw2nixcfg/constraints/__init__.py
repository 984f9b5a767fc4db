"""Cross-document consistency constraints."""
