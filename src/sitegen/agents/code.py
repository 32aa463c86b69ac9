"""Code generation agent - turns plan, design and copy into page components."""

from pathlib import PurePosixPath

from pydantic import BaseModel, Field

from src.sitegen.agents.base import Agent, AgentContext, AgentInput, Artifact
from src.sitegen.core.exceptions import BusinessRuleError
from src.sitegen.models.enums import AgentRole, Layer


class SourceFile(BaseModel):
    path: str = Field(min_length=1)
    content: str


class ComponentBundle(BaseModel):
    framework: str = "nextjs"
    entrypoint: str
    files: list[SourceFile]


class ComponentCodeAgent(Agent[AgentInput, ComponentBundle]):
    role = AgentRole.COMPONENT_CODE
    layer = Layer.CODE
    name = "Component Code"
    input_model = AgentInput
    output_model = ComponentBundle
    max_tokens = 16000
    temperature = 0.2
    instructions = (
        "Generate Next.js (App Router) page components with Tailwind CSS for every route "
        "in the site plan, using the palette, typography and copy from the upstream "
        "outputs. Paths are relative to the project root."
    )

    def validate_output(self, output: ComponentBundle) -> None:
        if not output.files:
            raise BusinessRuleError("Component bundle contains no files")
        paths = [file.path for file in output.files]
        if len(set(paths)) != len(paths):
            raise BusinessRuleError("Component bundle contains duplicate file paths")
        for path in paths:
            pure = PurePosixPath(path)
            if pure.is_absolute() or ".." in pure.parts:
                raise BusinessRuleError(f"Unsafe file path in component bundle: {path}")
        if output.entrypoint not in paths:
            raise BusinessRuleError(f"Entrypoint {output.entrypoint} is not among generated files")

    def store_artifacts(self, output: ComponentBundle, context: AgentContext) -> list[Artifact]:
        root = f"site/iteration-{context.iteration}"
        return [Artifact(f"{root}/{file.path}", file.content) for file in output.files]
