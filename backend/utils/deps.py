from typing import Annotated

from fastapi import Depends, Request

from core.config import Settings
from misc.active_tasks import ActiveTaskRegistry
from services.memory_service import MemoryService
from services.task_runner import TaskRunner


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_task_registry(request: Request) -> ActiveTaskRegistry:
    return request.app.state.task_registry


def get_task_runner(request: Request) -> TaskRunner:
    return request.app.state.task_runner


def get_memory_service(request: Request) -> MemoryService:
    return request.app.state.memory_service


SettingsDep = Annotated[Settings, Depends(get_settings)]
RegistryDep = Annotated[ActiveTaskRegistry, Depends(get_task_registry)]
TaskRunnerDep = Annotated[TaskRunner, Depends(get_task_runner)]
MemoryServiceDep = Annotated[MemoryService, Depends(get_memory_service)]
