"""Infrastructure services: local stores, repositories and remote collaborators."""
