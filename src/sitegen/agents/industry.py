"""Industry-specific prompt guidance for home-services verticals."""

from typing import Final

GENERIC_GUIDANCE: Final[str] = (
    "Focus on clear service descriptions, trust signals (licensing, reviews, years in "
    "business), an easy way to request a quote or call, and the local service area."
)

INDUSTRY_GUIDANCE: Final[dict[str, str]] = {
    "roofing": (
        "Homeowners searching for roofers are often dealing with leaks or storm damage. "
        "Lead with emergency and storm-damage repair, insurance claim assistance, free "
        "inspections, material options (asphalt, metal, tile) and warranties."
    ),
    "hvac": (
        "Split heating and cooling services clearly. Highlight 24/7 emergency repair, "
        "maintenance plans, energy-efficient system replacement and financing."
    ),
    "solar": (
        "Buyers compare savings. Explain the process from consultation to interconnection, "
        "incentives and tax credits, financing versus purchase, and production warranties."
    ),
    "restoration": (
        "Visitors are in a crisis. Put the emergency phone number above the fold, explain "
        "response times, insurance coordination and certifications (IICRC)."
    ),
    "plumbing": (
        "Emphasise fast response for leaks and clogs, upfront pricing, licensed plumbers, "
        "and list common services such as water heaters, drains and repiping."
    ),
    "electrical": (
        "Safety and licensing come first. Cover panel upgrades, EV chargers, lighting, "
        "inspections and code compliance for residential and commercial customers."
    ),
    "auto_repair": (
        "Show services by system (brakes, engine, transmission), certifications (ASE), "
        "warranty on parts and labour, and online appointment booking."
    ),
    "mitigation": (
        "Explain water, fire and mold mitigation steps, drying equipment, moisture "
        "documentation for insurers and round-the-clock availability."
    ),
}


def guidance_for(industry: str | None) -> str:
    """Guidance text for an industry, falling back to generic advice."""
    if industry is None:
        return GENERIC_GUIDANCE
    return INDUSTRY_GUIDANCE.get(industry.strip().lower(), GENERIC_GUIDANCE)
