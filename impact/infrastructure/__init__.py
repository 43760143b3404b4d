"""Persistence for the track catalog."""
