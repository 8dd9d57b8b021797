from typing import Dict, Literal, Optional, Union

from pydantic import BaseModel, Field


class JobCreate(BaseModel):
    url: str = Field(..., min_length=1)
    method: str = "get"
    # Either a mapping or the ad-hoc "key:value,key:value" string.
    params: Optional[Union[Dict[str, str], str]] = None


class JobResponse(BaseModel):
    job_id: int
    status: str


class JobRecord(BaseModel):
    job_id: int
    verb: str
    url: str
    params: Dict[str, str] = Field(default_factory=dict)
    status: str
    attempts: int = 0
    created_at: str
    updated_at: str


class Outcome(BaseModel):
    """What a lookup sees for a job id.

    ``pending`` is never stored; it stands for the absence of a row. A
    ``success`` may carry an empty body, which is still distinct from pending.
    """

    state: Literal["pending", "success", "error"]
    body: Optional[bytes] = None
    content_type: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def pending(cls) -> "Outcome":
        return cls(state="pending")

    @classmethod
    def success(cls, body: bytes, content_type: str) -> "Outcome":
        return cls(state="success", body=body, content_type=content_type)

    @classmethod
    def failure(cls, status_code: Optional[int], error: str) -> "Outcome":
        return cls(state="error", status_code=status_code, error=error)

    @property
    def is_terminal(self) -> bool:
        return self.state != "pending"
