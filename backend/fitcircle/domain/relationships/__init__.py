"""Connections between users and the per-viewer relationship map."""
