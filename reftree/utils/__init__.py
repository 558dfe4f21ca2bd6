"""Shared utilities: errors, single-flight, cancellation, ephemeral UI state, platform."""
