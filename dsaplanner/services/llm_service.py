"""
Completion API client used for problem classification.
Uses Groq as primary (honouring a user-supplied key), Gemini as backup, and
OpenRouter free models as last fallback. Every provider is asked for a JSON
object.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings
from ..errors import ClassificationFailure

logger = logging.getLogger(__name__)

# API URLs
GROQ_BASE_URL = "https://api.groq.com/openai/v1"
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

# OpenRouter fallback models (free, max 3 allowed)
OPENROUTER_FALLBACK_MODELS: List[str] = [
    "meta-llama/llama-3.3-70b-instruct:free",
    "google/gemma-3-27b-it:free",
    "mistralai/mistral-small-3.1-24b-instruct:free",
]

TEMPERATURE = 0.1
MAX_TOKENS = 4000


@dataclass
class CompletionResult:
    content: str
    model: str


def _sanitize_json_string(content: str) -> str:
    """
    Escape raw control characters that appear inside JSON string values.
    Models sometimes emit literal newlines/tabs inside strings.
    """

    def escape_control_chars_in_string(match):
        s = match.group(0)
        if len(s) < 2:
            return s
        quote = s[0]
        inner = s[1:-1]
        inner = inner.replace("\n", "\\n")
        inner = inner.replace("\r", "\\r")
        inner = inner.replace("\t", "\\t")
        inner = re.sub(
            r"[\x00-\x08\x0b\x0c\x0e-\x1f]",
            lambda m: f"\\u{ord(m.group(0)):04x}",
            inner,
        )
        return quote + inner + quote

    json_string_pattern = r'"(?:[^"\\]|\\.)*"'
    return re.sub(json_string_pattern, escape_control_chars_in_string, content, flags=re.DOTALL)


def parse_json_content(content: str) -> Dict[str, Any]:
    """
    Parse a model response into a JSON object.

    Raises:
        ClassificationFailure: if the content is not a JSON object
    """
    content = (content or "").strip()
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    content = content.strip()

    try:
        data = json.loads(_sanitize_json_string(content))
    except json.JSONDecodeError as e:
        raise ClassificationFailure(f"Failed to parse AI response: {e}") from e

    if not isinstance(data, dict):
        raise ClassificationFailure("AI response is not a JSON object")
    return data


class CompletionClient:
    """Sends one prompt through the configured provider chain."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.http_client = http_client

    async def _post(self, url: str, **kwargs) -> httpx.Response:
        try:
            if self.http_client is not None:
                return await self.http_client.post(url, **kwargs)
            async with httpx.AsyncClient(timeout=float(self.settings.llm_timeout_seconds)) as client:
                return await client.post(url, **kwargs)
        except (httpx.InvalidURL, RuntimeError) as e:
            # Bad URL or closed client: report as a failed request so the next provider runs
            raise httpx.RequestError(str(e)) from e

    async def _call_groq(self, system_prompt: str, user_prompt: str, api_key: str) -> dict:
        """Call Groq's OpenAI-compatible chat completions endpoint."""
        model = self.settings.groq_model
        try:
            response = await self._post(
                f"{GROQ_BASE_URL}/chat/completions",
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": model,
                    "messages": [
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    "temperature": TEMPERATURE,
                    "max_tokens": MAX_TOKENS,
                    "response_format": {"type": "json_object"},
                },
            )

            if response.status_code != 200:
                return {
                    "error": f"Groq API error: {response.status_code} - {response.text}",
                    "content": None,
                }

            data = response.json()
            content = data.get("choices", [{}])[0].get("message", {}).get("content", "")
            if not content:
                return {"error": "Groq: Empty response content", "content": None}
            return {"error": None, "content": content, "model": f"groq/{model}"}

        except httpx.TimeoutException:
            return {"error": "Groq request timed out", "content": None}
        except (httpx.HTTPError, ValueError, IndexError, AttributeError) as e:
            return {"error": f"Groq error: {str(e)}", "content": None}

    async def _call_gemini(self, system_prompt: str, user_prompt: str) -> dict:
        """Call Gemini generateContent with JSON output."""
        model = self.settings.gemini_model
        try:
            response = await self._post(
                f"{GEMINI_BASE_URL}/models/{model}:generateContent",
                params={"key": self.settings.gemini_api_key},
                headers={"Content-Type": "application/json"},
                json={
                    "contents": [{"parts": [{"text": user_prompt}]}],
                    "generationConfig": {
                        "temperature": TEMPERATURE,
                        "maxOutputTokens": MAX_TOKENS,
                        "responseMimeType": "application/json",
                    },
                    "systemInstruction": {"parts": [{"text": system_prompt}]},
                },
            )

            if response.status_code != 200:
                return {
                    "error": f"Gemini API error ({model}): {response.status_code} - {response.text}",
                    "content": None,
                }

            data = response.json()
            if "error" in data:
                return {
                    "error": f"Gemini error ({model}): {data['error'].get('message', 'Unknown error')}",
                    "content": None,
                }

            candidates = data.get("candidates", [])
            if not candidates:
                return {"error": f"Gemini ({model}): No candidates in response", "content": None}

            content = candidates[0].get("content", {}).get("parts", [{}])[0].get("text", "")
            if not content:
                return {"error": f"Gemini ({model}): Empty response content", "content": None}

            return {"error": None, "content": content, "model": f"gemini/{model}"}

        except httpx.TimeoutException:
            return {"error": f"Gemini ({model}) request timed out", "content": None}
        except (httpx.HTTPError, ValueError, IndexError, AttributeError) as e:
            return {"error": f"Gemini ({model}) error: {str(e)}", "content": None}

    async def _call_openrouter_fallback(self, system_prompt: str, user_prompt: str) -> dict:
        """Call OpenRouter with free models as last fallback."""
        try:
            response = await self._post(
                f"{OPENROUTER_BASE_URL}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.settings.openrouter_api_key}",
                    "Content-Type": "application/json",
                    "X-Title": "DSA Sheet Planner",
                },
                json={
                    "models": OPENROUTER_FALLBACK_MODELS,
                    "route": "fallback",
                    "messages": [
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    "temperature": TEMPERATURE,
                    "max_tokens": MAX_TOKENS,
                    "response_format": {"type": "json_object"},
                },
            )

            if response.status_code != 200:
                return {
                    "error": f"OpenRouter API error: {response.status_code} - {response.text}",
                    "content": None,
                }

            data = response.json()
            model_used = data.get("model", OPENROUTER_FALLBACK_MODELS[0])
            content = data.get("choices", [{}])[0].get("message", {}).get("content", "")
            if not content:
                return {"error": "OpenRouter: Empty response content", "content": None}
            return {"error": None, "content": content, "model": model_used}

        except httpx.TimeoutException:
            return {"error": "OpenRouter request timed out", "content": None}
        except (httpx.HTTPError, ValueError, IndexError, AttributeError) as e:
            return {"error": f"OpenRouter error: {str(e)}", "content": None}

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        api_key: Optional[str] = None,
    ) -> CompletionResult:
        """
        Run the prompt through the provider chain.

        Args:
            system_prompt: Instruction contract
            user_prompt: Request payload
            api_key: Optional user-supplied Groq key, used instead of the server key

        Raises:
            ClassificationFailure: if no provider is configured or all providers fail
        """
        groq_key = api_key or self.settings.groq_api_key
        errors = []

        if groq_key:
            result = await self._call_groq(system_prompt, user_prompt, groq_key)
            if result.get("content"):
                return CompletionResult(result["content"], result["model"])
            errors.append(result.get("error", "Unknown Groq error"))
            logger.warning("Groq failed: %s", errors[-1])

        if self.settings.gemini_api_key:
            result = await self._call_gemini(system_prompt, user_prompt)
            if result.get("content"):
                return CompletionResult(result["content"], result["model"])
            errors.append(result.get("error", "Unknown Gemini error"))
            logger.warning("Gemini failed: %s", errors[-1])

        if self.settings.openrouter_api_key:
            result = await self._call_openrouter_fallback(system_prompt, user_prompt)
            if result.get("content"):
                return CompletionResult(result["content"], result["model"])
            errors.append(result.get("error", "Unknown OpenRouter error"))
            logger.warning("OpenRouter failed: %s", errors[-1])

        if not errors:
            raise ClassificationFailure(
                "No API keys configured. Set GROQ_API_KEY, GEMINI_API_KEY or OPENROUTER_API_KEY, "
                "or supply an API key with the request"
            )
        raise ClassificationFailure(f"All providers failed. {'; '.join(errors)}")
