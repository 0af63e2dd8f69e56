"""
FastAPI routers for all API endpoints.

Each module defines a router for one area (health, questions, recommendations)
and is registered in main.py.
"""
