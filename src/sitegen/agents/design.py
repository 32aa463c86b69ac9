"""Design layer agents: color palette and typography."""

from typing import Final

from pydantic import BaseModel, Field

from src.sitegen.agents.base import Agent, AgentInput
from src.sitegen.core.exceptions import BusinessRuleError
from src.sitegen.models.enums import AgentRole, Layer

HEX_COLOR: Final[str] = r"^#[0-9a-fA-F]{6}$"

MIN_BASE_SIZE_PX: Final[int] = 14
MAX_BASE_SIZE_PX: Final[int] = 22
MIN_SCALE_RATIO: Final[float] = 1.067
MAX_SCALE_RATIO: Final[float] = 1.618


class ColorPalette(BaseModel):
    primary: str = Field(pattern=HEX_COLOR)
    secondary: str = Field(pattern=HEX_COLOR)
    accent: str = Field(pattern=HEX_COLOR)
    background: str = Field(pattern=HEX_COLOR)
    text: str = Field(pattern=HEX_COLOR)
    rationale: str = ""


def _luminance(hex_color: str) -> float:
    channels = [int(hex_color[i : i + 2], 16) / 255 for i in (1, 3, 5)]
    linear = [c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4 for c in channels]
    return 0.2126 * linear[0] + 0.7152 * linear[1] + 0.0722 * linear[2]


def contrast_ratio(foreground: str, background: str) -> float:
    """WCAG contrast ratio between two hex colors."""
    lighter, darker = sorted((_luminance(foreground), _luminance(background)), reverse=True)
    return (lighter + 0.05) / (darker + 0.05)


class ColorPaletteAgent(Agent[AgentInput, ColorPalette]):
    role = AgentRole.COLOR_PALETTE
    layer = Layer.DESIGN
    name = "Color Palette"
    input_model = AgentInput
    output_model = ColorPalette
    instructions = (
        "Choose a brand color palette that fits the business and its industry. Text on "
        "the background must be readable (WCAG AA, contrast ratio of at least 4.5:1)."
    )

    def validate_output(self, output: ColorPalette) -> None:
        ratio = contrast_ratio(output.text, output.background)
        if ratio < 4.5:
            raise BusinessRuleError(
                f"Text/background contrast ratio {ratio:.2f} is below 4.5",
                details={"contrast_ratio": round(ratio, 2)},
            )


class Typography(BaseModel):
    heading_font: str = Field(min_length=1)
    body_font: str = Field(min_length=1)
    base_size_px: int
    scale_ratio: float
    line_height: float = 1.5


class TypographyAgent(Agent[AgentInput, Typography]):
    role = AgentRole.TYPOGRAPHY
    layer = Layer.DESIGN
    name = "Typography"
    input_model = AgentInput
    output_model = Typography
    instructions = (
        "Pick a heading and body font pairing available on Google Fonts, a base font size "
        "in pixels and a modular type scale ratio."
    )

    def validate_output(self, output: Typography) -> None:
        if not MIN_BASE_SIZE_PX <= output.base_size_px <= MAX_BASE_SIZE_PX:
            raise BusinessRuleError(
                f"Base font size must be between {MIN_BASE_SIZE_PX} and {MAX_BASE_SIZE_PX}px"
            )
        if not MIN_SCALE_RATIO <= output.scale_ratio <= MAX_SCALE_RATIO:
            raise BusinessRuleError(
                f"Type scale ratio must be between {MIN_SCALE_RATIO} and {MAX_SCALE_RATIO}"
            )
