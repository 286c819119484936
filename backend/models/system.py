from pydantic import BaseModel

from models.load import InstanceInfo, MemoryUsage


class HealthResponse(InstanceInfo):
    status: str = "OK"
    active_tasks: int


class GcResponse(InstanceInfo):
    message: str = "Garbage collection completed"
    collected_objects: int
    before: MemoryUsage
    after: MemoryUsage
    heap_freed_mb: float
    rss_freed_mb: float


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
    pid: int
