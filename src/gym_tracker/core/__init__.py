"""Domain logic and store-facing services."""
