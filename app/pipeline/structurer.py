"""
Structuring client: asks a Gemini model to turn OCR text into receipt JSON.

The client only transports text; validating what comes back is the
normalizer's job.
"""
from __future__ import annotations

import logging
from typing import Protocol

import google.generativeai as genai

from app.errors import ErrorKind, PipelineError

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """\
You are a receipt parser AI. Analyze the following receipt text and extract structured information.

Receipt Text:
{raw_text}

Extract and return ONLY a valid JSON object with this exact structure (no markdown, no code blocks, just the JSON):
{{
  "storeName": "name of the store or merchant",
  "date": "date in YYYY-MM-DD format (use today's date if not found)",
  "items": [
    {{
      "name": "item name",
      "price": numeric price per unit,
      "quantity": numeric quantity (default 1)
    }}
  ],
  "totalAmount": total amount as a number
}}

Rules:
1. Extract all items with their prices
2. If quantity is mentioned (like "2x" or "Qty: 2"), include it
3. Clean up item names (remove extra characters, fix typos)
4. Ignore non-item lines (like "Thank you", "Total", headers, footers)
5. If total is not found, calculate it from items
6. Return ONLY the JSON object, nothing else"""


def build_prompt(raw_text: str, template: str = PROMPT_TEMPLATE) -> str:
    return template.format(raw_text=raw_text)


class StructuringClient(Protocol):
    def structure(self, raw_text: str, prompt_template: str = PROMPT_TEMPLATE) -> str: ...


class GeminiStructuringClient:
    """Structure receipt text with Google Gemini."""

    def __init__(
        self,
        api_key: str = "",
        model: str = "gemini-2.0-flash",
        timeout: float = 60.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout

    def structure(self, raw_text: str, prompt_template: str = PROMPT_TEMPLATE) -> str:
        if not self._api_key:
            raise PipelineError(
                ErrorKind.STRUCTURING_SERVICE_ERROR,
                "Structuring service is not configured",
                {"details": "GEMINI_API_KEY is not set"},
            )

        prompt = build_prompt(raw_text, prompt_template)
        logger.info("Gemini request: model=%s prompt_len=%d", self._model, len(prompt))
        try:
            genai.configure(api_key=self._api_key)
            model = genai.GenerativeModel(self._model)
            response = model.generate_content(
                prompt, request_options={"timeout": self._timeout}
            )
            text = response.text
        except Exception as e:
            # SDK surfaces auth, quota, network and blocked-response failures
            # through several unrelated exception types
            logger.error("Gemini call failed: %s", e, exc_info=True)
            raise PipelineError(
                ErrorKind.STRUCTURING_SERVICE_ERROR,
                "Failed to parse receipt with AI service",
                {"details": str(e)},
            ) from e

        logger.info("Gemini raw response: %s", text)
        return text
