"""Security and authentication helpers."""
