"""Domain layer: records, criteria, reconciliation and export."""
