"""Profile records, stores and the viewer-facing preview."""
