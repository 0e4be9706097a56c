"""Digitizer backed by the Gemini generateContent REST endpoint.

One request per call: fixed system instruction, strict JSON response schema, the inline
image, and a low sampling temperature. The API key is read from Settings (GEMINI_API_KEY
or API_KEY in the environment) and sent in the x-goog-api-key header.

Uses a persistent requests.Session so repeated calls from the web app reuse connections.
"""

import logging

import requests

from pattern_digitizer.ai.digitizer_base import BaseDigitizer, parse_pattern_json
from pattern_digitizer.ai.prompts import RESPONSE_SCHEMA, SYSTEM_INSTRUCTION, USER_PROMPT
from pattern_digitizer.ai.schema import ModelCard, PatternData
from pattern_digitizer.core.config import Settings
from pattern_digitizer.core.errors import ConfigurationError, TransportError

_log = logging.getLogger(__name__)


def build_request_body(image_b64: str, mime_type: str, temperature: float) -> dict:
    """generateContent payload: text part first, then the inline image."""
    return {
        "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"text": USER_PROMPT},
                    {"inline_data": {"mime_type": mime_type, "data": image_b64}},
                ],
            }
        ],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": RESPONSE_SCHEMA,
            "temperature": temperature,
        },
    }


def extract_response_text(payload: dict) -> str:
    """Concatenate text parts of the first candidate. Raises TransportError when there is none."""
    candidates = payload.get("candidates") or []
    if not candidates:
        feedback = payload.get("promptFeedback") or {}
        reason = feedback.get("blockReason")
        if reason:
            raise TransportError(f"Request was blocked by the model ({reason}).")
        raise TransportError("Model returned no candidates.")
    first = candidates[0]
    parts = (first.get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    if not text.strip():
        reason = first.get("finishReason", "UNKNOWN")
        raise TransportError(f"Model returned an empty response (finishReason={reason}).")
    return text


class GeminiDigitizer(BaseDigitizer):
    """Schema-constrained single-shot call to a Gemini model."""

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        if not settings.api_key:
            raise ConfigurationError("GeminiDigitizer requires an API key.")
        self._api_key = settings.api_key
        self._model = settings.model
        self._endpoint = settings.api_endpoint.rstrip("/")
        self._temperature = settings.temperature
        self._timeout = settings.request_timeout_seconds
        self._session = session or requests.Session()

    def get_model_card(self) -> ModelCard:
        return ModelCard(name="gemini", version=self._model)

    @property
    def url(self) -> str:
        return f"{self._endpoint}/models/{self._model}:generateContent"

    def _post(self, json_payload: dict) -> dict:
        """POST to generateContent and return the parsed JSON envelope."""
        try:
            resp = self._session.post(
                self.url,
                json=json_payload,
                headers={"Content-Type": "application/json", "x-goog-api-key": self._api_key},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Network error calling {self._model}: {e}") from e
        if not resp.ok:
            raise TransportError(f"{self._model} returned HTTP {resp.status_code}: {_error_message(resp)}")
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"{self._model} returned a non-JSON envelope.") from e

    def digitize(self, image_b64: str, mime_type: str) -> PatternData:
        _log.info("Digitize request: model=%s mime=%s payload=%d chars", self._model, mime_type, len(image_b64))
        envelope = self._post(build_request_body(image_b64, mime_type, self._temperature))
        text = extract_response_text(envelope)
        data = parse_pattern_json(text)
        _log.info(
            "Digitize ok: %s (%s), %d color(s), %d file(s)",
            data.analysis_summary.pattern_name,
            data.analysis_summary.repeat_type.value,
            len(data.color_palette),
            len(data.files),
        )
        return data


def _error_message(resp: requests.Response) -> str:
    """Best-effort error text from a Google API error body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason or "no body"
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return str(body["error"].get("message") or body["error"].get("status") or "unknown error")
    return str(body)[:200]
