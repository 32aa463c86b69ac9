"""Discovery chat service.

A chat turn is the one agent call answered within the request. It is still
recorded as an agent execution, so it shows up in listings and can be
retried like any other.
"""

from typing import Any
from uuid import UUID

from src.sitegen.agents.extraction import merge_extraction
from src.sitegen.agents.llm import LLMProvider
from src.sitegen.core.config import Settings, get_settings
from src.sitegen.core.exceptions import (
    AgentTimeoutError,
    BusinessRuleError,
    OrchestrationError,
    ParseError,
    ProviderError,
    ValidationError,
)
from src.sitegen.core.logging import get_logger
from src.sitegen.models import AgentRole, CompanyProfile, ExecutionStatus
from src.sitegen.models.base import utc_now
from src.sitegen.orchestration.runner import AgentRunner
from src.sitegen.repositories import CompanyProfileRepository
from src.sitegen.schemas.project import DiscoveryChatRequest, DiscoveryChatResponse
from src.sitegen.services.execution_store import ExecutionStore

logger = get_logger(__name__)

# Failure classification recorded by the runner -> error raised to the caller
_FAILURES: dict[str, type[OrchestrationError]] = {
    "ValidationError": ValidationError,
    "ParseError": ParseError,
    "BusinessRuleError": BusinessRuleError,
    "ProviderError": ProviderError,
    "TimeoutError": AgentTimeoutError,
}


class DiscoveryService:
    def __init__(
        self,
        store: ExecutionStore,
        provider: LLMProvider,
        *,
        runner: AgentRunner | None = None,
        settings: Settings | None = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.runner = runner or AgentRunner(store, provider, settings=self.settings)

    async def chat(self, request: DiscoveryChatRequest) -> DiscoveryChatResponse:
        """
        Answer one discovery turn and merge any facts it carried into the profile.

        Extraction is best effort: unparseable facts leave the profile as it
        was and come back as ``warning``.

        Raises:
            NotFoundError: If the project does not exist in this tenant
            ValidationError, ParseError, ProviderError, AgentTimeoutError:
                If the agent call itself failed
        """
        project = await self.store.get_project(request.project_id)
        prior = await self._load_profile(project.id)

        execution = await self.store.create_agent_execution(
            project_id=project.id,
            agent_role=AgentRole.DISCOVERY_CHAT.value,
            config={"mode": "chat"},
            meta={"inline": True},
        )
        finished = await self.runner.run(
            execution,
            {
                "message": request.message,
                "history": request.history,
                "profile": prior,
                "industry": project.industry,
            },
            timeout=self.settings.default_layer_timeout_seconds,
            industry=project.industry,
        )
        if finished.status != ExecutionStatus.COMPLETED.value or finished.output is None:
            error_type = finished.meta.get("errorType", "")
            message = finished.meta.get("errorMessage") or "Discovery chat failed"
            raise _FAILURES.get(error_type, ProviderError)(message)

        result = merge_extraction(prior, finished.output["evidence"])
        await self._save_profile(
            project.id, result.profile, result.completeness, result.completed_sections
        )

        logger.info(
            "Discovery turn answered",
            project_id=str(project.id),
            completeness=result.completeness,
            extraction_warning=result.warning is not None,
        )
        return DiscoveryChatResponse(
            agent_execution_id=finished.id,
            reply=finished.output["reply"],
            profile=result.profile,
            completeness=result.completeness,
            completed_sections=result.completed_sections,
            warning=result.warning,
        )

    async def _load_profile(self, project_id: UUID) -> dict[str, Any]:
        async with self.store.session() as session:
            profile = await CompanyProfileRepository(session, self.store.tenant_id).get_by_project(
                project_id
            )
        return dict(profile.data) if profile is not None else {}

    async def _save_profile(
        self,
        project_id: UUID,
        data: dict[str, Any],
        completeness: int,
        completed_sections: list[str],
    ) -> None:
        async with self.store.session() as session:
            repo = CompanyProfileRepository(session, self.store.tenant_id)
            profile = await repo.get_by_project(project_id)
            if profile is None:
                profile = CompanyProfile(tenant_id=self.store.tenant_id, project_id=project_id)
                repo.add(profile)
            profile.data = data
            profile.completeness = completeness
            profile.completed_sections = completed_sections
            profile.updated_at = utc_now()
            await session.commit()
