from fastapi import APIRouter, Depends

from app.routes import api, history

router = APIRouter()
router.include_router(api.router, tags=["Chat"])
router.include_router(
    history.router,
    prefix="/history",
    tags=["History"],
    dependencies=[Depends(history.require_history_api)],
)
