"""Single-page in-memory to-do list served with FastAPI."""
