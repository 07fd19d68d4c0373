"""FastAPI application for the Check-in Service."""
from fastapi import FastAPI
from dotenv import load_dotenv

load_dotenv()

from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.checkin_service.routers.activities import router as activities_router
from services.checkin_service.routers.athletes import router as athletes_router
from services.checkin_service.routers.checkins import router as checkins_router
from services.checkin_service.routers.hosts import router as hosts_router
from services.checkin_service.routers.locations import router as locations_router
from services.checkin_service.routers.pet_checkins import router as pet_checkins_router
from services.checkin_service.routers.pets import router as pets_router
from services.checkin_service.routers.rewards import router as rewards_router


def create_app() -> FastAPI:
    """Create and configure the Check-in Service FastAPI app."""
    app = FastAPI(
        title="Check-in Service",
        version="0.1.0",
        description="Weekly athlete check-ins, reward tiers and host administration.",
    )

    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "checkin"}

    app.include_router(hosts_router, prefix="/hosts")
    app.include_router(locations_router, prefix="/locations")
    app.include_router(activities_router, prefix="/activities")
    app.include_router(athletes_router, prefix="/athletes")
    app.include_router(pets_router, prefix="/pets")
    app.include_router(checkins_router, prefix="/checkins")
    app.include_router(pet_checkins_router, prefix="/pet-checkins")
    app.include_router(rewards_router, prefix="/rewards")

    return app


app = create_app()
