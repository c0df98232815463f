"""Text and data helpers shared across mzforge."""
