"""Field service route timing engine."""
