from fastapi import APIRouter
from portal.routers import activity, auth, companies, files, notifications, requests

# Centralized API router hub
# Routers are aggregated here and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(companies.router, tags=["Companies"])
api_router.include_router(files.router, tags=["Files"])
api_router.include_router(notifications.router, tags=["Notifications"])
api_router.include_router(requests.router, tags=["Document Requests"])
api_router.include_router(activity.router, tags=["Activity"])
