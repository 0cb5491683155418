"""
Conservation advice from the Gemini text-generation API.

``request_conservation_advice`` raises ``AdviceUnavailable`` when no advice
could be produced, so callers that memoize results can skip failures.
``get_conservation_advice`` never raises: an empty response becomes a
fixed "no insights" string and any failure is logged and replaced by a
fixed error string.
"""

import asyncio
import logging
from typing import Any, Optional

import google.generativeai as genai
from google.api_core import exceptions

from . import config
from .model import UserInputs

logger = logging.getLogger(__name__)


class AdviceUnavailable(Exception):
    """No advice could be generated (missing key, rate limit or API error)."""


def build_advice_prompt(prediction: int, inputs: UserInputs) -> str:
    """Prompt embedding the current prediction and inputs."""
    leak_text = "Leak Detected" if inputs.leak_status else "No Leaks"
    return f"""
    As a Water Conservation Expert at Thakur College, analyze this scenario:
    - Predicted Usage: {prediction} Liters/Day
    - Household Size: {inputs.household_size}
    - Temperature: {inputs.temperature}°C
    - Season: {inputs.season.value}
    - Leak Status: {leak_text}
    - Usage Pattern: {inputs.usage_pattern.value}

    Provide 3 concise, highly professional bullet points of advice to optimize water efficiency.
    Keep it strictly professional for a faculty demonstration.
    """


def _create_client(model_name: str):
    api_key = config.get_api_key()
    if not api_key:
        return None
    genai.configure(api_key=api_key)
    return genai.GenerativeModel(model_name)


def request_conservation_advice(prediction: int,
                                inputs: UserInputs,
                                model_name: Optional[str] = None,
                                client: Optional[Any] = None) -> str:
    """
    Ask Gemini for three bullet points of conservation advice.

    Parameters
    ----------
    prediction : int
        Predicted daily usage in litres
    inputs : UserInputs
        The inputs the prediction was made for
    model_name : str, optional
        Gemini model; defaults to ``config.GEMINI_MODEL``
    client : optional
        Object with a ``generate_content`` method. Built from the
        environment's API key when omitted.

    Returns
    -------
    str
        The advice text, or ``config.ADVICE_EMPTY_TEXT`` for an empty reply

    Raises
    ------
    AdviceUnavailable
        When no API key is configured or the request fails
    """
    model_name = model_name or config.GEMINI_MODEL
    if client is None:
        client = _create_client(model_name)
        if client is None:
            logger.warning("No Gemini API key configured; skipping advice request")
            raise AdviceUnavailable("No Gemini API key configured")

    prompt = build_advice_prompt(prediction, inputs)
    try:
        response = client.generate_content(
            prompt,
            generation_config={"temperature": config.GEMINI_TEMPERATURE},
        )
        return response.text or config.ADVICE_EMPTY_TEXT
    except exceptions.ResourceExhausted as e:
        logger.warning("Gemini rate limit reached for model %s", model_name)
        raise AdviceUnavailable("Rate limit reached") from e
    except Exception as e:
        logger.exception("Gemini error")
        raise AdviceUnavailable(str(e)) from e


def get_conservation_advice(prediction: int,
                            inputs: UserInputs,
                            model_name: Optional[str] = None,
                            client: Optional[Any] = None) -> str:
    """Like :func:`request_conservation_advice`, with ``config.ADVICE_ERROR_TEXT`` on failure."""
    try:
        return request_conservation_advice(prediction, inputs, model_name, client)
    except AdviceUnavailable:
        return config.ADVICE_ERROR_TEXT


async def fetch_conservation_advice(prediction: int,
                                    inputs: UserInputs,
                                    model_name: Optional[str] = None,
                                    client: Optional[Any] = None) -> str:
    """Run :func:`get_conservation_advice` without blocking the event loop."""
    return await asyncio.to_thread(
        get_conservation_advice, prediction, inputs, model_name, client
    )
