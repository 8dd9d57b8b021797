from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError

from fetchjobs.api.deps import get_coordinator
from fetchjobs.schemas.jobs import JobCreate, JobResponse
from fetchjobs.services.coordinator import JobCoordinator, JobValidationError
from fetchjobs.utils.params import parse_param_string

router = APIRouter()

FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_job_create(request: Request) -> JobCreate:
    """Accept the submission as JSON or as form fields.

    Form submissions carry `url`, `method` and `params` (the key:value string),
    or bracketed `params[key]=value` fields.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_TYPES):
        form = await request.form()
        data: Any = {}
        bracketed: Dict[str, str] = {}
        for key, value in form.multi_items():
            if not isinstance(value, str):
                continue
            if key.startswith("params[") and key.endswith("]"):
                bracketed[key[len("params["):-1]] = value
            else:
                data[key] = value
        if bracketed and "params" not in data:
            data["params"] = bracketed
    else:
        try:
            data = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid JSON body")
    try:
        return JobCreate.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())


def render_ack(job_id: int, fmt: str) -> Response:
    if fmt == "json":
        return JSONResponse(
            JobResponse(job_id=job_id, status="queued").model_dump(), status_code=202
        )
    if fmt == "html":
        return HTMLResponse(
            f'<p>Job <a href="/jobs/{job_id}">#{job_id}</a> has been queued. '
            f"Use <code>GET /jobs/{job_id}</code> to check its status "
            "(and retrieve results once available).</p>",
            status_code=202,
        )
    return PlainTextResponse(
        f"Job #{job_id} has been queued. Use GET /jobs/{job_id} to check its status "
        "(and retrieve results once available).",
        status_code=202,
    )


@router.post("/jobs", status_code=202)
async def create_job_api(
    request: JobCreate = Depends(read_job_create),
    fmt: str = Query("text", alias="format", pattern="^(text|html|json)$"),
    coordinator: JobCoordinator = Depends(get_coordinator),
) -> Response:
    params = request.params
    if isinstance(params, str):
        try:
            params = parse_param_string(params)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
    try:
        job_id = await coordinator.submit(request.method, request.url, params)
    except JobValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return render_ack(job_id, fmt)


@router.get("/jobs")
async def list_jobs(
    coordinator: JobCoordinator = Depends(get_coordinator),
) -> Dict[str, Any]:
    jobs = await coordinator.list_jobs()
    return {"jobs": [job.model_dump() for job in jobs]}


@router.get("/jobs/{job_id}")
async def get_job(
    job_id: int, coordinator: JobCoordinator = Depends(get_coordinator)
) -> Response:
    job = await coordinator.describe(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="job not found")

    outcome = await coordinator.lookup(job_id)
    if outcome.state == "pending":
        return PlainTextResponse(f"Job {job_id} not yet complete.", status_code=202)
    if outcome.state == "success":
        # Header set directly so the upstream content type is echoed unchanged.
        return Response(
            content=outcome.body or b"",
            headers={"content-type": outcome.content_type or "application/octet-stream"},
        )
    return PlainTextResponse(
        f"Job {job_id} failed: {outcome.error or 'unknown error'}.",
        status_code=502,
    )
