"""Per-field visibility tiers, the policy engine and the redactor."""
