"""HTTP boundary for the confession board."""
