"""Per-UID I/O usage sampling and reporting."""
