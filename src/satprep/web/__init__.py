"""Web API for the attempt core (FastAPI)."""
