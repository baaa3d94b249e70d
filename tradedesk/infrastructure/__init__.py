"""Infrastructure layer: configuration, persistence, auth and market data adapters."""
