from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from misc.utils import instance_info
from models.load import MemoryUsage
from models.system import ErrorResponse, GcResponse, HealthResponse
from utils.deps import MemoryServiceDep, RegistryDep, SettingsDep

router = APIRouter()

INDEX_HTML = """
<html>
  <body>
    <h1>Hi, this works?</h1>
  </body>
</html>
"""


@router.get("/health", response_model=HealthResponse)
def health(registry: RegistryDep, settings: SettingsDep):
    return HealthResponse(active_tasks=registry.size(), **instance_info(settings))


@router.get("/", response_class=HTMLResponse)
def index():
    return INDEX_HTML


@router.post(
    "/api/gc",
    response_model=GcResponse,
    responses={400: {"model": ErrorResponse}},
)
def force_gc(memory_service: MemoryServiceDep, settings: SettingsDep):
    """Run a full garbage collection and report what it freed."""
    result = memory_service.collect()

    return GcResponse(
        collected_objects=result.collected_objects,
        before=MemoryUsage(**vars(result.before)),
        after=MemoryUsage(**vars(result.after)),
        heap_freed_mb=result.heap_freed_mb,
        rss_freed_mb=result.rss_freed_mb,
        **instance_info(settings),
    )
