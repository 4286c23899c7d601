from fastapi import APIRouter

from advisorhub.features.agent.api.router import router as agent_router
from advisorhub.features.attachments.api.router import router as attachments_router
from advisorhub.features.chat.api import router as conversations_router

api_router = APIRouter()
api_router.include_router(agent_router)
api_router.include_router(attachments_router)
api_router.include_router(conversations_router)
