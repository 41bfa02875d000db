"""Combat evaluators: one-on-one duels and equal-cost group fights."""
