"""Response models for the synthetic load endpoints."""

from pydantic import BaseModel, Field


class InstanceInfo(BaseModel):
    instance_id: str
    pid: int


class DelayResponse(InstanceInfo):
    message: str = "Response after delay"
    requested_delay: int
    actual_delay: int
    elapsed_ms: int = Field(description="Wall-clock time actually spent waiting")


class CpuTaskResponse(InstanceInfo):
    message: str = "CPU intensive task completed"
    task_id: str
    seconds_requested: int
    actual_duration_ms: int


class MemoryUsage(BaseModel):
    heap_used_mb: float
    rss_mb: float


class MemoryStressResponse(InstanceInfo):
    message: str = "Memory allocated"
    allocated_mb: int
    allocation_time_ms: int
    before: MemoryUsage
    after: MemoryUsage
    heap_used_mb: float
    rss_mb: float
    heap_increase_mb: float
    rss_increase_mb: float
