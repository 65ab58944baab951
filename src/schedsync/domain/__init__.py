"""Domain layer: festival model, reconciliation core and persistence ports."""
