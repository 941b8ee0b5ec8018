from fastapi import APIRouter

from helpdesk.core.config import settings

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok", "env": settings.env}
