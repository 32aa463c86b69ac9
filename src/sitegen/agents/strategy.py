"""Site planning agent - produces the route map and SEO defaults."""

import json
from typing import Final

from pydantic import BaseModel, Field

from src.sitegen.agents.base import Agent, AgentContext, AgentInput, Artifact
from src.sitegen.core.exceptions import BusinessRuleError
from src.sitegen.models.enums import AgentRole, Layer

MIN_ROUTES: Final[int] = 3
REQUIRED_ROUTES: Final[tuple[str, ...]] = ("/", "/about", "/contact")


class RouteSpec(BaseModel):
    path: str = Field(pattern=r"^/[a-z0-9\-/]*$")
    title: str = Field(min_length=1)
    purpose: str
    sections: list[str] = Field(default_factory=list)


class MetaTags(BaseModel):
    title: str = Field(min_length=1, max_length=70)
    description: str = Field(min_length=1, max_length=170)


class SeoSpec(BaseModel):
    default_meta: MetaTags
    keywords: list[str] = Field(default_factory=list)


class SiteSpec(BaseModel):
    site_name: str
    routes: list[RouteSpec]
    navigation: list[str] = Field(default_factory=list)
    seo: SeoSpec


class SitePlannerAgent(Agent[AgentInput, SiteSpec]):
    role = AgentRole.SITE_PLANNER
    layer = Layer.ORCHESTRATOR
    name = "Site Planner"
    input_model = AgentInput
    output_model = SiteSpec
    temperature = 0.5
    instructions = (
        "Plan the website's information architecture. Produce the list of routes with "
        "their purpose and page sections, the main navigation and default SEO metadata. "
        "Every site needs a home page '/', an '/about' page and a '/contact' page."
    )

    def validate_output(self, output: SiteSpec) -> None:
        if len(output.routes) < MIN_ROUTES:
            raise BusinessRuleError(
                f"Site plan must define at least {MIN_ROUTES} routes, got {len(output.routes)}"
            )
        paths = {route.path for route in output.routes}
        missing = [path for path in REQUIRED_ROUTES if path not in paths]
        if missing:
            raise BusinessRuleError(
                f"Site plan is missing required routes: {', '.join(missing)}",
                details={"missing": missing},
            )
        if len(paths) != len(output.routes):
            raise BusinessRuleError("Site plan contains duplicate routes")

    def store_artifacts(self, output: SiteSpec, context: AgentContext) -> list[Artifact]:
        lines = [f"# {output.site_name}", "", "## Routes", ""]
        for route in output.routes:
            lines.append(f"- `{route.path}` **{route.title}**: {route.purpose}")
            lines.extend(f"  - {section}" for section in route.sections)
        lines += [
            "",
            "## SEO",
            "",
            f"- Title: {output.seo.default_meta.title}",
            f"- Description: {output.seo.default_meta.description}",
        ]
        return [
            Artifact("specs/site-spec.json", json.dumps(output.model_dump(mode="json"), indent=2)),
            Artifact("specs/site-spec.md", "\n".join(lines) + "\n"),
        ]
