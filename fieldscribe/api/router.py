"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from fieldscribe.api.transcribe import router as transcribe_router
from fieldscribe.api.assessments import router as assessments_router
from fieldscribe.api.templates import router as templates_router
from fieldscribe.api.websocket import router as websocket_router

api_router = APIRouter()
api_router.include_router(transcribe_router)
api_router.include_router(assessments_router)
api_router.include_router(templates_router)
api_router.include_router(websocket_router)
