"""Account service: FastAPI app over a SQLite user store."""
