"""Search services: type registry, query building, dispatch and projection."""
