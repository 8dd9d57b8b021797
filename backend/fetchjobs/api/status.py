from typing import Any, Dict

from fastapi import APIRouter, Depends

from fetchjobs.api.deps import get_pool
from fetchjobs.services.worker import WorkerPool

router = APIRouter()


@router.get("/status")
async def status(pool: WorkerPool = Depends(get_pool)) -> Dict[str, Any]:
    return pool.snapshot()
