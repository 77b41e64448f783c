"""FastAPI monitoring server for the capability runtime."""
