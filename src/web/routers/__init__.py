from fastapi import FastAPI

from src.web.routers.earnings import router as earnings_router

def register_routers(app: FastAPI):
    """Register all routers with the application."""
    app.include_router(earnings_router)
