"""
LLM helper for the question generator.

Wraps the Groq chat completions API in JSON mode.
"""

import logging
from typing import Optional

from groq import Groq

from .config import get_settings


logger = logging.getLogger(__name__)


def get_agent_decision(
    system_prompt: str,
    user_payload: str,
    model: Optional[str] = None,
    temperature: float = 0.7,
) -> str:
    """
    Get a JSON decision from the LLM using Groq.

    Args:
        system_prompt: The system prompt to set the LLM's behavior
        user_payload: The user message/payload to process
        model: Model name, defaults to the configured GROQ_MODEL
        temperature: Sampling temperature

    Returns:
        Raw JSON string from the LLM response

    Raises:
        ValueError: If GROQ_API_KEY is not configured
        groq.APIError: If the API call fails
    """
    settings = get_settings()
    if not settings.groq_api_key:
        raise ValueError("GROQ_API_KEY environment variable is not set")

    client = Groq(api_key=settings.groq_api_key)
    model_name = model or settings.groq_model
    logger.info("Requesting completion from %s", model_name)

    response = client.chat.completions.create(
        model=model_name,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_payload},
        ],
        response_format={"type": "json_object"},
        temperature=temperature,
    )

    return response.choices[0].message.content
