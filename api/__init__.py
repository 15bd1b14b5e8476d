"""Health assessment models and reference service."""
