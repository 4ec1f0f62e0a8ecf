from fastapi import APIRouter

from medchat.features.attachments.api import router as attachments_router
from medchat.features.chat.api import router as chats_router
from medchat.features.profiles.api import router as profile_router

api_router = APIRouter()
api_router.include_router(attachments_router)
api_router.include_router(chats_router)
api_router.include_router(profile_router)
