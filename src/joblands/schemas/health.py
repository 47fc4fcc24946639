from typing import Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: Literal["healthy", "unhealthy"]
    database: Literal["connected", "disconnected"]
    model: str
    version: str


class StatusResponse(BaseModel):
    status: Literal["ok"] = "ok"
