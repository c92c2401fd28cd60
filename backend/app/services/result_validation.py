"""
Parsing and structural validation of provider output.

Models are asked for bare JSON but sometimes wrap it in markdown fences;
those are stripped before decoding. Validation checks shape only, not
content quality.
"""
import json
import logging
import re
from typing import Any, Dict, List
from urllib.parse import urlparse

from app.errors import InvalidGenerationError
from app.services.catalog import PLAN_TIERS

logger = logging.getLogger(__name__)

_FENCE_START = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```$")


def strip_code_fences(content: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) fence if present."""
    content = content.strip()
    if content.startswith("```"):
        content = _FENCE_START.sub("", content)
        content = _FENCE_END.sub("", content)
    return content


def parse_document(content: str) -> Dict[str, Any]:
    """
    Decode the provider's answer into a JSON object.

    Raises:
        InvalidGenerationError: If the content is not a JSON object
    """
    cleaned = strip_code_fences(content or "")
    try:
        document = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse provider response: {e}", extra={"event": "provider_response_unparseable"})
        raise InvalidGenerationError("Invalid response format from AI")

    if not isinstance(document, dict):
        raise InvalidGenerationError("Invalid response format from AI")
    return document


def is_valid_url(value: Any) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not isinstance(value, str):
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_learning_plan(document: Dict[str, Any], tier_key: str) -> Dict[str, Any]:
    """
    Check that a plan has phases, enough resources per phase and a
    usable URL on every resource.

    Raises:
        InvalidGenerationError: Describing the first class of problem found
    """
    phases = document.get("phases")
    if not isinstance(phases, list) or not phases:
        raise InvalidGenerationError("Invalid learning plan format received")

    expected = PLAN_TIERS[tier_key].resources_per_phase
    problems: List[str] = []

    for phase_index, phase in enumerate(phases, start=1):
        resources = phase.get("resources") if isinstance(phase, dict) else None
        if not isinstance(resources, list):
            resources = []
        if len(resources) < expected:
            problems.append(f"phase {phase_index} has {len(resources)}/{expected} resources")
        for resource_index, resource in enumerate(resources, start=1):
            url = resource.get("url") if isinstance(resource, dict) else None
            if not is_valid_url(url):
                problems.append(f"phase {phase_index} resource {resource_index} has invalid URL {url!r}")

    if problems:
        logger.error(
            f"Plan validation failed: {'; '.join(problems)}",
            extra={"event": "plan_validation_failed", "tier": tier_key, "problems": problems}
        )
        raise InvalidGenerationError("Generated plan has invalid resources")

    return document


def validate_quiz(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check that a quiz has a non-empty question list.

    Raises:
        InvalidGenerationError: If questions are missing or empty
    """
    questions = document.get("questions")
    if not isinstance(questions, list) or not questions:
        logger.error("Invalid quiz structure received", extra={"event": "quiz_validation_failed"})
        raise InvalidGenerationError("Invalid quiz format received")
    return document
