"""Scan, diff and merge stages of a translation merge run."""
