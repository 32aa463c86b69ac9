"""Discovery chat endpoint."""

from fastapi import APIRouter

from src.sitegen.api.dependencies import CurrentIdentity, DiscoveryServiceDep
from src.sitegen.schemas.project import DiscoveryChatRequest, DiscoveryChatResponse

router = APIRouter(prefix="/discovery", tags=["discovery"])


@router.post(
    "/chat",
    response_model=DiscoveryChatResponse,
    summary="Discovery chat turn",
    description=(
        "Answer one message of the company-profile interview. Facts the reply carries "
        "are merged into the project's profile; if they cannot be extracted the profile "
        "is left unchanged and ``warning`` explains why."
    ),
    responses={
        404: {"description": "Project not found"},
        502: {"description": "LLM provider failed"},
    },
)
async def discovery_chat(
    request: DiscoveryChatRequest,
    service: DiscoveryServiceDep,
    _identity: CurrentIdentity,
) -> DiscoveryChatResponse:
    return await service.chat(request)
