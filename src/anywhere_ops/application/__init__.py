"""Application layer: prompt resolution, budgeting, request building, routing."""
