from itmaint.api.routes.auth import router as auth_router
from itmaint.api.routes.equipments import router as equipments_router
from itmaint.api.routes.interventions import router as interventions_router
from itmaint.api.routes.dashboard import router as dashboard_router
from itmaint.api.routes.alerts import router as alerts_router

__all__ = [
    "auth_router",
    "equipments_router",
    "interventions_router",
    "dashboard_router",
    "alerts_router",
]
