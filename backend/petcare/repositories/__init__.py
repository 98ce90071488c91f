# Repositories package - SQLAlchemy adapters for the domain ports
