"""Control API routes."""

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import Application
from ...models import Team, User


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


class UserRequest(BaseModel):
    """Request model for registering a roster user."""

    id: str
    team_id: str
    name: str
    role: str = ""
    team_name: str | None = None


def create_control_router(app: Application) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api", tags=["control"])

    @router.post("/control/reset", response_model=StatusResponse)
    async def reset_system() -> dict:
        """Reset conversations and stored data between test runs."""
        try:
            await app.reset()
            return {"status": "ok"}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/users", response_model=StatusResponse)
    async def register_user(request: UserRequest) -> dict:
        """Add a user to the roster used for display names."""
        team = Team(id=request.team_id, name=request.team_name) if request.team_name else None
        await app.register_user(
            User(id=request.id, team_id=request.team_id, name=request.name, role=request.role),
            team=team,
        )
        return {"status": "ok"}

    return router
