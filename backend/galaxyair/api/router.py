from fastapi import APIRouter

from galaxyair.api.routes import health, auth, flights, flow, bookings, admin

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])  # GET /
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])  # POST /login, /register, /logout
api_router.include_router(flights.router, prefix="/flights", tags=["flights"])  # GET /, /routes, /{id}, POST /search
api_router.include_router(flow.router, prefix="/flow", tags=["flow"])  # booking flow steps
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])  # GET /my, /{id}
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])  # admin endpoints
