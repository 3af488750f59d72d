"""Core primitives shared by every layer: constants and domain errors."""
