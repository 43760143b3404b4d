"""Adapters for tag extraction and audio output."""
