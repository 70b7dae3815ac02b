"""
AI Project Enhancement (Groq)

Groq exposes an OpenAI-compatible API, so we use the openai library with
Groq's base_url.

Given a rough project title and description, the model returns:
- an improved description
- tags, required skills and concrete requirements
- a suggested experience level

Only companies (and admins) may call this; it is a writing aid for project
creation, nothing is stored.
"""

import json
import logging
import re

from openai import OpenAI, OpenAIError

from app.core.config import get_settings
from app.core.errors import UpstreamError, ensure_allowed
from app.core.policy import Action, Actor, ProjectResource, can_perform

logger = logging.getLogger(__name__)

THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL)

SYSTEM_PROMPT = "You are a helpful assistant that responds only with valid JSON."

ENHANCE_PROMPT = """You are a skilled professional helping companies create better project descriptions.
Enhance the following project information and return structured metadata in JSON format:

Title: {title}
Description: {description}

Output format:
{{
  "enhancedDescription": "detailed, well-structured and professional project description",
  "tags": ["3-5 relevant tags"],
  "requiredSkills": ["3-7 technical skills"],
  "requirements": ["3-5 specific project requirements"],
  "experienceLevel": "Beginner | Intermediate | Advanced"
}}
Return ONLY the JSON, no explanation."""


class AIService:
    """
    Wrapper for the Groq chat completion API.
    """

    def __init__(self, client: OpenAI = None):
        settings = get_settings()
        self.model = settings.groq_model
        self.temperature = settings.groq_temperature
        self.max_tokens = settings.groq_max_tokens
        if client is None and settings.groq_api_key:
            client = OpenAI(api_key=settings.groq_api_key, base_url=settings.groq_base_url)
        self.client = client

    def _call_api(self, system_prompt: str, user_content: str) -> str:
        """
        Internal method to call the chat completion endpoint.
        Returns raw text response.
        """
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content}
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature
        )
        return response.choices[0].message.content or ""

    def _extract_json(self, text: str) -> dict:
        """
        Extract JSON from API response.
        Handles <think> sections and markdown code blocks around the JSON.
        """
        text = THINK_BLOCK.sub("", text).strip()
        if text.startswith("```json"):
            text = text[7:]
        elif text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]

        return json.loads(text.strip())

    def test_connection(self) -> bool:
        """Test if the Groq API is reachable"""
        if self.client is None:
            return False
        try:
            response = self._call_api("You are a test assistant.", "Reply with exactly: OK")
            return "OK" in response.upper()
        except OpenAIError:
            logger.warning("Groq connection failed", exc_info=True)
            return False

    def enhance_project(self, actor: Actor, title: str, description: str) -> dict:
        ensure_allowed(can_perform(actor, Action.create, ProjectResource(company_id=actor.subject_id)))

        if self.client is None:
            raise UpstreamError("AI service is not configured", reason="ai_unavailable")

        try:
            raw = self._call_api(
                SYSTEM_PROMPT, ENHANCE_PROMPT.format(title=title, description=description)
            )
        except OpenAIError:
            logger.warning("AI enhancement request failed", exc_info=True)
            raise UpstreamError("AI service is unavailable", reason="ai_unavailable")

        try:
            data = self._extract_json(raw)
        except ValueError:
            logger.warning("Unparsable AI response: %r", raw[:500])
            raise UpstreamError("Failed to parse AI response", reason="ai_bad_response")

        if not isinstance(data, dict) or not data.get("enhancedDescription"):
            logger.warning("AI response missing enhancedDescription: %r", raw[:500])
            raise UpstreamError("Failed to parse AI response", reason="ai_bad_response")

        return {
            "enhanced_description": data["enhancedDescription"],
            "tags": _string_list(data.get("tags")),
            "required_skills": _string_list(data.get("requiredSkills")),
            "requirements": _string_list(data.get("requirements")),
            "experience_level": data.get("experienceLevel")
        }


def _string_list(value) -> list:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item]
