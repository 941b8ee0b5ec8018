from fastapi import APIRouter

from ..deps import ActorDep, DBDep, http_error
from helpdesk.core.errors import HelpdeskError
from helpdesk.schemas.tickets import DashboardStats
from helpdesk.services import tickets as svc

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(db: DBDep, current: ActorDep):
    try:
        return await svc.dashboard_stats(db, current)
    except HelpdeskError as exc:
        raise http_error(exc) from exc
