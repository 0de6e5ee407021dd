"""Health and readiness routes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/")
def read_root() -> dict[str, str]:
    """Health/info endpoint with a short usage message."""
    return {"message": "Welcome to the BT Study API. Refer to /docs for available endpoints."}


@router.get("/alive")
async def alive_check() -> JSONResponse:
    """Health check endpoint for load balancers and uptime checks."""
    return JSONResponse({"status": "ok", "message": "BT Study Engine is alive and healthy."})


__all__ = ["router"]
