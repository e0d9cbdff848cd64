"""FastAPI service exposing the project CRUD API."""
