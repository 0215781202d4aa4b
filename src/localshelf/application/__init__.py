"""Application layer - scanning, extraction and reconciliation services."""
