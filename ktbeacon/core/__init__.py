"""Core types and errors for ktbeacon."""
