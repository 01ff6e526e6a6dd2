"""FastAPI application serving restpipe resources."""
