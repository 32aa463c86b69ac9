from fastapi import APIRouter

from src.sitegen.api.v1 import discovery, executions, projects, stream, workflows

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(projects.router)
api_router.include_router(workflows.router)
api_router.include_router(executions.router)
api_router.include_router(stream.router)
api_router.include_router(discovery.router)
