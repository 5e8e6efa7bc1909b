from fastapi import APIRouter

from fitcircle.api.v1.endpoints import auth, friends, messages, social

api_router = APIRouter()

# Include routers
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(friends.router, prefix="/friends", tags=["friends"])
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
api_router.include_router(social.router, prefix="/social", tags=["social"])
