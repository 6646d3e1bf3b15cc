"""Application layer: use-case service, DTOs and command handling."""
