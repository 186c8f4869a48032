"""Trust-to-audit conversion engine."""
