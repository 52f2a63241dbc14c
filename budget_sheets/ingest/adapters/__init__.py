"""Per-format readers and writers."""
