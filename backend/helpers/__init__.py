"""Shared request, text and locale helpers."""
