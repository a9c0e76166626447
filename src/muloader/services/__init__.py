"""Service layer: reconciliation, view filtering, permissions, presentation."""
