"""Database layer: models, engine, tenant scope bridge and repositories."""
