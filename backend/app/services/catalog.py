"""
Pricing and generation settings per plan tier and quiz difficulty.

Each tier / difficulty fixes the credit cost, the model used and how much
output the provider is asked for.
"""
import re
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class PlanTier:
    name: str
    credits: int
    model: str
    phases: str
    resources_per_phase: int
    detail_level: str
    max_tokens: int


@dataclass(frozen=True)
class QuizDifficulty:
    name: str
    credits: int
    description: str
    question_count: int
    model: str = "gpt-4o-mini"
    max_tokens: int = 3000


PLAN_TIERS: Dict[str, PlanTier] = {
    "basic": PlanTier(
        name="Basic",
        credits=120,
        model="gpt-4o-mini",
        phases="5-7",
        resources_per_phase=2,
        detail_level="Comprehensive",
        max_tokens=4000,
    ),
    "premium": PlanTier(
        name="Premium",
        credits=160,
        model="gpt-4o",
        phases="7-9",
        resources_per_phase=3,
        detail_level="Expert-level",
        max_tokens=10000,
    ),
}

QUIZ_DIFFICULTIES: Dict[str, QuizDifficulty] = {
    "easy": QuizDifficulty(
        name="Generally",
        credits=50,
        description="Basic concepts and fundamental knowledge",
        question_count=5,
    ),
    "medium": QuizDifficulty(
        name="Accurate",
        credits=75,
        description="Applied knowledge and problem-solving",
        question_count=8,
    ),
    "hard": QuizDifficulty(
        name="Precise",
        credits=100,
        description="Expert-level analysis and synthesis",
        question_count=11,
    ),
}

LANGUAGES: Dict[str, str] = {
    "english": "English",
    "german": "Deutsch",
    "french": "Français",
    "spanish": "Español",
}

BUDGET_OPTIONS: Dict[str, str] = {
    "free": "Use ONLY free resources (Free, $0)",
    "mixed": "Mix of free and paid resources, prioritize value",
    "premium": "Focus on premium, high-quality paid resources",
}

LEARNING_STYLES: Dict[str, str] = {
    "visual": "Focus on video courses, visual tutorials, and interactive content",
    "practical": "Emphasize hands-on projects, coding exercises, and practical applications",
    "theoretical": "Include books, research papers, and comprehensive documentation",
    "mixed": "Balanced mix of videos, books, projects, and interactive content",
}


def language_instruction(language: str, artifact: str) -> Optional[str]:
    """Instruction forcing non-English output, or None for English."""
    if language == "english":
        return None
    name = LANGUAGES[language]
    return (
        f"LANGUAGE REQUIREMENT: Generate the ENTIRE {artifact} in {name}. "
        f"All text, descriptions, titles, and content must be in {name}."
    )


MAX_TOPIC_LENGTH = 75
MAX_TOPICS = 3
_UNSAFE_TOPIC_CHARS = re.compile(r"[<>\"'&]")


def sanitize_topic(topic: str) -> str:
    """
    Validate and clean a free-text topic.

    The length and topic-count limits apply to the raw input; the unsafe
    characters ``< > " ' &`` are then stripped. Empty comma-separated
    segments are ignored when counting topics. Cleaning an already
    cleaned topic returns it unchanged.

    Raises:
        ValueError: With a client-facing message if the topic is unusable
    """
    if not isinstance(topic, str) or not topic.strip():
        raise ValueError("Topic is required")
    topic = topic.strip()
    if len(topic) > MAX_TOPIC_LENGTH:
        raise ValueError(f"Topic must be {MAX_TOPIC_LENGTH} characters or less")

    if len(_topic_parts(topic)) > MAX_TOPICS:
        raise ValueError(f"Maximum {MAX_TOPICS} topics allowed (separated by commas)")

    cleaned = _UNSAFE_TOPIC_CHARS.sub("", topic).strip()
    if not _topic_parts(cleaned):
        raise ValueError("Topic contains no valid characters")
    return cleaned


def _topic_parts(topic: str) -> List[str]:
    return [part.strip() for part in topic.split(",") if part.strip()]
