"""Language-model classifier used for link relevance and method grading.

The rest of the pipeline only depends on :class:`Classifier`: an object with
an async ``rank(prompt)`` returning a JSON object.  :class:`OpenAIClassifier`
is the production implementation.
"""

import json
import logging
from typing import Any, Dict, Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from app.services.errors import ClassifierError
from app.services.prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
TIMEOUT = 60  # seconds


class Classifier(Protocol):
    async def rank(self, prompt: str) -> Dict[str, Any]: ...


def parse_json_object(response_text: Optional[str]) -> Dict[str, Any]:
    """Parse a model reply into a dict, tolerating markdown code fences.

    Raises:
        ClassifierError: if the reply is empty, not JSON or not a JSON object.
    """
    if not response_text or not response_text.strip():
        raise ClassifierError("Classifier returned an empty response")

    text = response_text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        lines = lines[1:-1] if lines[-1].strip() == "```" else lines[1:]
        text = "\n".join(lines)

    try:
        result = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ClassifierError(f"Classifier returned invalid JSON: {exc}") from exc

    if not isinstance(result, dict):
        raise ClassifierError("Classifier response is not a JSON object")
    return result


class OpenAIClassifier:
    """Chat-completions classifier running in JSON mode."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=TIMEOUT)
        logger.info("OpenAIClassifier initialized: model=%s", model)

    async def rank(self, prompt: str) -> Dict[str, Any]:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=0.1,
            )
        except OpenAIError as exc:
            logger.warning("Classifier request failed: %s", exc)
            raise ClassifierError(f"Classifier request failed: {exc}") from exc

        if not response.choices:
            raise ClassifierError("Classifier returned no choices")
        return parse_json_object(response.choices[0].message.content)
