"""Domain layer: models, fee and payment strategies, ticketing, billing and the Facility aggregate."""
