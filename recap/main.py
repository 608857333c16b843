"""FastAPI application entry point."""
from fastapi import FastAPI

from recap.config import get_settings
from recap.routers import auth, recap


app = FastAPI(title="Activity Recap API", version=get_settings().app_version)


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok"}


# Include routers
app.include_router(recap.router)
app.include_router(auth.router)
