"""Domain entities, key namespacing and service interfaces."""
