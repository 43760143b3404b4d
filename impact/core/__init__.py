"""Core types, track resolution and playback state."""
