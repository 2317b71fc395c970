"""SQLAlchemy models. Importing a module registers its tables with ``Base.metadata``."""
