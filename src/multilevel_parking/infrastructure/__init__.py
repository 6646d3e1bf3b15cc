"""Infrastructure layer: facility layout loading."""
