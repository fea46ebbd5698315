"""API layer — FastAPI application, routes, middleware."""
