"""
External Predictor Adapters

The forecaster can optionally consult a high-cost external model
(for example a hosted text-to-text transformer) that is treated as
a black box: it receives a short text prompt and returns either
free text or a sequence of numbers. Nothing about its output is
trusted; the forecast engine parses and validates it.
"""

import json
import logging
from typing import Any, Optional, Protocol, Sequence, Union

import aiohttp

from .exceptions import PredictorFailure

logger = logging.getLogger(__name__)

PredictorOutput = Union[str, Sequence[float]]


class ExternalPredictor(Protocol):
    """Structural interface for pluggable forecasters."""

    async def generate(self, prompt: str) -> PredictorOutput:
        ...


def build_prompt(values: Sequence[float]) -> str:
    """Frame a numeric series as a text-generation task."""
    return "predict next values: " + ", ".join(f"{v:g}" for v in values)


class HttpTextPredictor:
    """
    Predictor backed by a text-generation HTTP endpoint.

    Speaks the common inference-API request shape:

        POST {"inputs": "<prompt>", "parameters": {...}}
        -> [{"generated_text": "..."}]

    Example:
        predictor = HttpTextPredictor("https://host/models/t5-small")
        text = await predictor.generate("predict next values: 100, 102")
    """

    def __init__(
        self,
        url: str,
        api_token: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        max_new_tokens: int = 20,
    ):
        """
        Args:
            url: Endpoint URL
            api_token: Optional bearer token
            session: Shared aiohttp session (one is created lazily if None)
            max_new_tokens: Generation length limit sent to the model
        """
        self.url = url
        self.api_token = api_token
        self.max_new_tokens = max_new_tokens
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def generate(self, prompt: str) -> str:
        payload = {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": self.max_new_tokens,
                # greedy decoding
                "do_sample": False,
            },
        }
        headers = {"content-type": "application/json"}
        if self.api_token:
            headers["authorization"] = f"Bearer {self.api_token}"

        logger.debug(f"POST {self.url}")
        try:
            async with self._get_session().post(self.url, json=payload, headers=headers) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise PredictorFailure(f"HTTP {resp.status} from predictor: {text[:200]}")
        except aiohttp.ClientError as exc:
            raise PredictorFailure(f"Predictor request failed: {exc}") from exc

        try:
            body: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PredictorFailure(f"Invalid JSON from predictor: {text[:200]}") from exc

        if isinstance(body, list) and body:
            body = body[0]
        if not isinstance(body, dict) or not isinstance(body.get("generated_text"), str):
            raise PredictorFailure("Predictor response has no 'generated_text'")
        return body["generated_text"]

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
