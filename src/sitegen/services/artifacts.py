"""Artifact storage for files described by agents."""

import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from src.sitegen.agents.base import AgentContext, Artifact
from src.sitegen.core.exceptions import BusinessRuleError
from src.sitegen.core.logging import get_logger

logger = get_logger(__name__)


class ArtifactStore(Protocol):
    async def write(self, context: AgentContext, artifacts: Sequence[Artifact]) -> list[str]:
        """Persist artifacts and return their stored paths."""
        ...


class LocalArtifactStore:
    """Writes artifacts under ``<root>/<tenant_id>/<project_id>/``."""

    def __init__(self, root: Path):
        self.root = root

    def project_root(self, context: AgentContext) -> Path:
        return self.root / str(context.tenant_id) / str(context.project_id)

    def resolve(self, context: AgentContext, path: str) -> Path:
        """Absolute target for an artifact path.

        Raises:
            BusinessRuleError: If the path escapes the project directory.
        """
        base = self.project_root(context).resolve()
        target = (base / path).resolve()
        if not target.is_relative_to(base) or target == base:
            raise BusinessRuleError(f"Artifact path escapes project directory: {path}")
        return target

    def _write_all(self, context: AgentContext, artifacts: list[Artifact]) -> list[str]:
        # Resolve everything first so a bad path writes nothing
        targets = [(self.resolve(context, artifact.path), artifact) for artifact in artifacts]
        written = []
        for target, artifact in targets:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(artifact.content, encoding="utf-8")
            written.append(artifact.path)
        return written

    async def write(self, context: AgentContext, artifacts: Sequence[Artifact]) -> list[str]:
        if not artifacts:
            return []
        written = await asyncio.to_thread(self._write_all, context, list(artifacts))
        logger.debug(
            "Artifacts written",
            project_id=str(context.project_id),
            count=len(written),
        )
        return written
