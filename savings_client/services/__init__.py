"""Services Layer — stores that orchestrate remote calls around the pure core."""
