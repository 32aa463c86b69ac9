"""Best-effort structured extraction for the discovery chat.

The company profile is a tree of twelve sections. Each chat turn may carry
a JSON block with newly learned facts; those are deep-merged into the prior
profile. A turn whose evidence cannot be parsed leaves the profile unchanged
and yields a warning instead of blocking the conversation.
"""

from dataclasses import dataclass
from typing import Any, Final

from src.sitegen.agents.parsing import Content, content_to_text, extract_json
from src.sitegen.core.exceptions import ParseError
from src.sitegen.core.logging import get_logger

logger = get_logger(__name__)

PROFILE_SECTIONS: Final[tuple[str, ...]] = (
    "company",
    "brand",
    "offerings",
    "audience",
    "marketing",
    "team",
    "credibility",
    "website",
    "support",
    "locations",
    "local",
    "compliance",
)

# A section counts toward completeness above this fill ratio
COUNTED_THRESHOLD: Final[float] = 0.2
# ...and is reported as completed above this one
COMPLETED_THRESHOLD: Final[float] = 0.5


@dataclass(frozen=True)
class ExtractionResult:
    profile: dict[str, Any]
    completeness: int
    completed_sections: list[str]
    warning: str | None = None


def deep_merge(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Merge ``source`` into a copy of ``target``.

    Mappings merge recursively. Other values overwrite, except None and
    empty strings, which never erase known facts, and scalars never
    replace a known section.
    """
    output = dict(target)
    for key, value in source.items():
        prior = target.get(key)
        if isinstance(value, dict):
            output[key] = deep_merge(prior if isinstance(prior, dict) else {}, value)
        elif value is None or value == "":
            continue
        elif isinstance(prior, dict):
            logger.warning("Ignoring scalar over profile section", key=key)
        else:
            output[key] = value
    return output


def section_fill(section: Any) -> float:
    """Fraction of leaf fields in a section that hold a value (0-1)."""
    if not isinstance(section, dict):
        return 0.0

    total = 0
    filled = 0

    def count(node: dict[str, Any]) -> None:
        nonlocal total, filled
        for value in node.values():
            if isinstance(value, dict):
                count(value)
            else:
                total += 1
                if value:
                    filled += 1

    count(section)
    return filled / total if total else 0.0


def profile_completeness(profile: dict[str, Any]) -> int:
    """Completeness percentage over the sections present in the profile."""
    present = [profile[name] for name in PROFILE_SECTIONS if profile.get(name)]
    if not present:
        return 0
    score = 0.0
    for section in present:
        fill = section_fill(section)
        if fill > COUNTED_THRESHOLD:
            score += fill
    return round(score / len(present) * 100)


def completed_sections(profile: dict[str, Any]) -> list[str]:
    return [name for name in PROFILE_SECTIONS if section_fill(profile.get(name)) > COMPLETED_THRESHOLD]


def extract_profile(evidence: Content) -> dict[str, Any]:
    """Profile facts in a response, restricted to known sections.

    Raises:
        ParseError: If the evidence holds no JSON object.
    """
    data = extract_json(evidence)
    return {key: value for key, value in data.items() if key in PROFILE_SECTIONS}


def merge_extraction(prior: dict[str, Any], evidence: Content | None) -> ExtractionResult:
    """Reconcile newly extracted facts with the prior profile.

    Pure apart from logging: the prior profile is never mutated.
    """
    warning = None
    merged = dict(prior)
    # A reply without any JSON simply carries no new facts
    if evidence and "{" in content_to_text(evidence):
        try:
            merged = deep_merge(prior, extract_profile(evidence))
        except ParseError as e:
            warning = f"Profile extraction skipped: {e.message}"
            logger.warning("Profile extraction failed, keeping prior state", error=e.message)
    return ExtractionResult(
        profile=merged,
        completeness=profile_completeness(merged),
        completed_sections=completed_sections(merged),
        warning=warning,
    )
