"""FastAPI application exposing the response cache over HTTP."""
