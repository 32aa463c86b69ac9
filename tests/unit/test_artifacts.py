"""Tests for local artifact storage."""

from uuid import uuid7

import pytest

from src.sitegen.agents.base import AgentContext, Artifact
from src.sitegen.core.exceptions import BusinessRuleError
from src.sitegen.services.artifacts import LocalArtifactStore

pytestmark = pytest.mark.unit


@pytest.fixture
def context() -> AgentContext:
    return AgentContext(tenant_id=uuid7(), project_id=uuid7())


async def test_writes_under_tenant_and_project(tmp_path, context):
    store = LocalArtifactStore(tmp_path)
    written = await store.write(
        context,
        [
            Artifact(path="specs/site-spec.json", content="{}"),
            Artifact(path="site/iteration-0/app/page.tsx", content="export default 1"),
        ],
    )

    assert written == ["specs/site-spec.json", "site/iteration-0/app/page.tsx"]
    base = tmp_path / str(context.tenant_id) / str(context.project_id)
    assert (base / "specs" / "site-spec.json").read_text() == "{}"
    assert (base / "site" / "iteration-0" / "app" / "page.tsx").exists()


async def test_nothing_to_write(tmp_path, context):
    assert await LocalArtifactStore(tmp_path).write(context, []) == []
    assert not any(tmp_path.iterdir())


@pytest.mark.parametrize("path", ["../escape.txt", "../../other-tenant/x", "/etc/passwd", "."])
async def test_rejects_paths_outside_project(tmp_path, context, path):
    store = LocalArtifactStore(tmp_path)
    with pytest.raises(BusinessRuleError, match="escapes"):
        await store.write(
            context,
            [Artifact(path="ok.txt", content="fine"), Artifact(path=path, content="x")],
        )
    # A bad path writes nothing
    assert not (store.project_root(context) / "ok.txt").exists()
