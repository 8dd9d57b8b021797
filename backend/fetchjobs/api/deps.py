from fastapi import Request

from fetchjobs.services.coordinator import JobCoordinator
from fetchjobs.services.worker import WorkerPool


def get_coordinator(request: Request) -> JobCoordinator:
    return request.app.state.coordinator


def get_pool(request: Request) -> WorkerPool:
    return request.app.state.pool
