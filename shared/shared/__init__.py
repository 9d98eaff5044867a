"""Cross-service building blocks: auth, database, middleware, models."""
