"""
Prompt construction for learning plans and quizzes.
Both prompts ask for a single JSON document and nothing else.
"""
from typing import Tuple

from app.services.catalog import (
    PLAN_TIERS,
    QUIZ_DIFFICULTIES,
    BUDGET_OPTIONS,
    LEARNING_STYLES,
    language_instruction,
)

PLAN_SYSTEM_PROMPT = """You are an expert learning plan creator. Your SOLE task is to generate a learning plan in JSON format. Your response MUST be a single, complete JSON object, and contain absolutely no other text, explanations, or markdown outside the JSON. Ensure the JSON is perfectly valid and adheres to the requested structure. Focus on concise but comprehensive information. Keep descriptions focused and actionable. Ensure tier-appropriate depth and quality differences."""

QUIZ_SYSTEM_PROMPT = """You are an expert quiz creator. Your SOLE task is to generate a quiz in JSON format. Your response MUST be a single, complete JSON object, and contain absolutely no other text, explanations, or markdown outside the JSON. Ensure the JSON is perfectly valid and adheres to the requested structure. Create high-quality multiple-choice questions that match the specified difficulty level."""

_BASIC_SPECIFICATIONS = """BASIC TIER SPECIFICATIONS:
- Focus on fundamental concepts and essential skills
- Clear, beginner-friendly explanations
- Basic but solid project ideas
- Free or low-cost resources
- 2 resources per phase (courses, tutorials, documentation)
- Practical exercises that build foundation
- Simple assessment methods
- Basic tools and software recommendations

Each resource must include:
- title: Resource name
- description: What the resource covers
- provider: Platform/author name
- difficulty: beginner/intermediate
- duration: Estimated time
- price: Free/Paid amount
- url: REAL working URL (mandatory)
- type: course/tutorial/documentation/book/video"""

_PREMIUM_SPECIFICATIONS = """PREMIUM TIER SPECIFICATIONS:
- Expert-level mastery with cutting-edge content
- Advanced technologies and industry trends
- Enterprise-grade projects and solutions
- Premium curated resources and certifications
- 3 premium resources per phase
- Complex scenarios and advanced problem-solving
- Career advancement and professional development
- Industry connections and networking guidance

Each resource must include:
- title: Resource name
- description: Focused coverage explanation (2-3 sentences max)
- provider: Platform/author name
- difficulty: advanced/expert
- duration: Time estimate
- price: Pricing information
- url: REAL working URL (mandatory)
- type: course/tutorial/documentation/book/video/tool/certification
- highlights: Key learning outcomes (1-2 sentences)
- careerValue: Professional impact (1 sentence)"""

_QUIZ_DIFFICULTY_REQUIREMENTS = {
    "easy": """- Focus on basic concepts and fundamental knowledge
- Use simple, clear language
- Test recognition and basic understanding
- Provide brief explanations""",
    "medium": """- Focus on applied knowledge and problem-solving
- Include scenario-based questions
- Test analytical thinking and application
- Provide detailed explanations with context""",
    "hard": """- Focus on expert-level analysis and synthesis
- Include complex scenarios and edge cases
- Test critical thinking and deep understanding
- Provide comprehensive explanations with multiple perspectives
- Challenge advanced practitioners""",
}


def _plan_json_structure(topic: str, tier_key: str) -> str:
    premium_fields = ""
    if tier_key == "premium":
        premium_fields = """,
          "highlights": "Key outcomes (1-2 sentences)",
          "careerValue": "Professional impact (1 sentence)\""""
    return f"""MANDATORY JSON STRUCTURE:
{{
  "title": "Learning plan title",
  "topic": "{topic}",
  "tier": "{tier_key}",
  "overview": {{
    "description": "Detailed overview",
    "duration": "Total time estimate",
    "level": "Skill level",
    "style": "Learning approach"
  }},
  "phases": [
    {{
      "title": "Phase name",
      "description": "Phase overview",
      "duration": "Time needed",
      "objectives": [
        {{
          "title": "Learning objective",
          "description": "Clear learning outcome (1-2 sentences)",
          "timeRequired": "Estimated time"
        }}
      ],
      "resources": [
        {{
          "title": "Resource title",
          "description": "What this resource covers (2-3 sentences max)",
          "provider": "Platform name",
          "difficulty": "beginner/intermediate/advanced",
          "duration": "How long it takes",
          "price": "Free/Paid amount",
          "url": "REAL WORKING URL - MANDATORY",
          "type": "course/tutorial/documentation/book/video"{premium_fields}
        }}
      ],
      "exercises": [
        {{
          "title": "Exercise name",
          "description": "What to build/practice (1-2 sentences)",
          "timeRequired": "Time estimate",
          "difficulty": "Level"
        }}
      ]
    }}
  ],
  "projects": [
    {{
      "title": "Project name",
      "description": "Project overview and goals (2-3 sentences)",
      "timeRequired": "Duration",
      "difficulty": "Level",
      "outcomes": "What you'll achieve (1-2 sentences)"
    }}
  ],
  "toolsAndSoftware": [
    {{
      "name": "Tool name",
      "purpose": "Primary use case (1 sentence)",
      "cost": "Free/Paid",
      "url": "REAL WORKING URL"
    }}
  ]
}}

RESPOND WITH VALID JSON ONLY - NO OTHER TEXT"""


def build_plan_prompt(
    topic: str,
    tier_key: str,
    language: str,
    budget: str,
    learning_style: str,
) -> Tuple[str, str]:
    """
    Build (system_prompt, user_prompt) for a learning plan.

    Args:
        topic: Sanitized topic (up to three comma-separated subjects)
        tier_key: basic | premium
        language: english | german | french | spanish
        budget: free | mixed | premium
        learning_style: visual | practical | theoretical | mixed
    """
    tier = PLAN_TIERS[tier_key]
    budget_instruction = BUDGET_OPTIONS[budget]
    style_instruction = LEARNING_STYLES[learning_style]
    resources = tier.resources_per_phase
    quality = "Essential foundation" if tier_key == "basic" else "Expert-level with cutting-edge content"

    sections = []
    language_line = language_instruction(language, "learning plan")
    if language_line:
        sections.append(language_line)

    sections.append(f"""Create a comprehensive learning plan for: {topic}

TIER: {tier_key.upper()} ({tier.detail_level})
BUDGET PREFERENCE: {budget_instruction}
LEARNING STYLE: {style_instruction}

CRITICAL REQUIREMENTS:
1. WORKING URLS: Every resource MUST have a real, functional URL that users can click and visit
2. RESOURCE COUNT: Exactly {resources} resources per phase
3. QUALITY LEVEL: {quality}
4. BUDGET: {budget_instruction}
5. STYLE: {style_instruction}

URL REQUIREMENTS (MANDATORY):
- Use REAL, WORKING URLs only
- Examples: https://coursera.org/learn/..., https://youtube.com/watch?v=..., https://github.com/..., https://docs.python.org/...
- NO placeholder or fake URLs
- Every resource needs a "url" field with actual link

PHASE COUNT: {tier.phases} phases
RESOURCES PER PHASE: {resources} resources (each with working URL)""")

    sections.append(_BASIC_SPECIFICATIONS if tier_key == "basic" else _PREMIUM_SPECIFICATIONS)
    sections.append(_plan_json_structure(topic, tier_key))

    return PLAN_SYSTEM_PROMPT, "\n\n".join(sections)


def build_quiz_prompt(topic: str, difficulty: str, language: str) -> Tuple[str, str]:
    """Build (system_prompt, user_prompt) for a multiple-choice quiz."""
    count = QUIZ_DIFFICULTIES[difficulty].question_count

    sections = []
    language_line = language_instruction(language, "quiz")
    if language_line:
        sections.append(language_line)

    sections.append(f"""Create a {difficulty} difficulty quiz about: {topic}
Number of questions: {count}

IMPORTANT: Create exactly {count} multiple-choice questions with 4 options each.

DIFFICULTY REQUIREMENTS:
{_QUIZ_DIFFICULTY_REQUIREMENTS[difficulty]}""")

    sections.append(f"""Respond with valid JSON only:
{{
  "title": "Quiz title",
  "topic": "{topic}",
  "difficulty": "{difficulty}",
  "knowledgeEvaluation": {{
    "description": "Brief evaluation of knowledge level based on quiz performance expectations",
    "skillAreas": ["area1", "area2", "area3"]
  }},
  "questions": [
    {{
      "question": "Question text",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correct": 0,
      "explanation": "Detailed explanation of why this answer is correct"
    }}
  ]
}}""")

    return QUIZ_SYSTEM_PROMPT, "\n\n".join(sections)
