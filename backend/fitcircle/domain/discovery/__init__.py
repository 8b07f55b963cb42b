"""Profile search and recommendations filtered through the visibility policy."""
