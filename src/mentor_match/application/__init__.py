"""Application-level errors shared by services and use cases."""
