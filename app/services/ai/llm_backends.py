"""
LLM Backend Abstraction Layer
==============================
Hosted language-model backends behind one small interface.

Supported backends
------------------
* **OpenAIBackend**: Chat Completions via the ``openai`` SDK.
* **AnthropicBackend**: Messages API via the ``anthropic`` SDK.

Both SDKs are optional (``pip install agrotrack[ai]``) and imported only when
a backend initialises, so the rest of the application starts without them.
``create_backend`` returns ``None`` whenever a backend cannot be used; the
advisor then reports AI features as disabled.

Quick-start
-----------
::

    backend = create_backend("openai", api_key="sk-...")
    if backend is not None:
        reply = backend.generate(
            system_prompt="You are a plant care expert.",
            user_prompt="My monstera has yellow leaves.",
        )
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
}


@dataclass
class LLMResponse:
    """Standardised wrapper around every backend response."""

    text: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)  # prompt_tokens, completion_tokens, total_tokens
    latency_ms: float = 0.0


class LLMBackend(ABC):
    """
    Abstract base for every LLM backend.

    Subclasses implement :meth:`_build_client` and :meth:`_complete`; the
    base class owns key checks, timing and the availability flag.
    """

    name: str = "base"
    sdk_package: str = ""

    def __init__(self, api_key: str, model: str, timeout: int = 30):
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._client: Any = None

    @property
    def model(self) -> str:
        return self._model

    @property
    def is_available(self) -> bool:
        """``True`` when the backend has been initialised and is ready."""
        return self._client is not None

    def initialize(self) -> bool:
        """Create the SDK client. Returns ``True`` on success."""
        if not self._api_key:
            logger.warning("%s backend: no API key provided", self.name)
            return False
        try:
            self._client = self._build_client()
        except ImportError:
            logger.error(
                "%s backend: '%s' package not installed. Run: pip install %s",
                self.name,
                self.sdk_package,
                self.sdk_package,
            )
            return False
        except Exception as exc:
            logger.error("%s backend init failed: %s", self.name, exc)
            return False
        logger.info("%s backend initialised (model=%s)", self.name, self._model)
        return True

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int = 1024,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Generate a completion.

        Parameters
        ----------
        json_mode:
            Ask the model for a bare JSON object. Callers still validate the
            result; not every model honours the request.

        Raises
        ------
        RuntimeError
            The backend was never initialised.
        """
        if not self.is_available:
            raise RuntimeError(f"{self.name} backend not initialised")
        started = time.perf_counter()
        response = self._complete(system_prompt, user_prompt, max_tokens, temperature, json_mode)
        response.latency_ms = (time.perf_counter() - started) * 1000
        return response

    @abstractmethod
    def _build_client(self) -> Any:
        """Import the SDK and return a configured client."""

    @abstractmethod
    def _complete(
        self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float, json_mode: bool
    ) -> LLMResponse:
        """Run one request against the SDK client."""


class OpenAIBackend(LLMBackend):
    """Backend for OpenAI's Chat Completions API (or a compatible endpoint via ``base_url``)."""

    name = "openai"
    sdk_package = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODELS["openai"],
        base_url: str | None = None,
        timeout: int = 30,
    ):
        super().__init__(api_key, model, timeout)
        self._base_url = base_url

    def _build_client(self) -> Any:
        import openai

        kwargs: dict[str, Any] = {"api_key": self._api_key, "timeout": self._timeout}
        if self._base_url:
            kwargs["base_url"] = self._base_url
        return openai.OpenAI(**kwargs)

    def _complete(
        self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float, json_mode: bool
    ) -> LLMResponse:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        response = self._client.chat.completions.create(**kwargs)

        usage: dict[str, int] = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }
        return LLMResponse(text=response.choices[0].message.content or "", model=response.model, usage=usage)


class AnthropicBackend(LLMBackend):
    """Backend for Anthropic's Messages API."""

    name = "anthropic"
    sdk_package = "anthropic"

    def _build_client(self) -> Any:
        import anthropic

        return anthropic.Anthropic(api_key=self._api_key, timeout=self._timeout)

    def _complete(
        self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float, json_mode: bool
    ) -> LLMResponse:
        # No native JSON mode; ask for it in the prompt
        if json_mode:
            user_prompt += "\n\nRespond ONLY with valid JSON, no markdown fences."
        response = self._client.messages.create(
            model=self._model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        text = "".join(getattr(block, "text", "") for block in (response.content or []))

        usage: dict[str, int] = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens,
            }
        return LLMResponse(text=text, model=response.model, usage=usage)


def create_backend(
    provider: str,
    *,
    api_key: str = "",
    model: str = "",
    base_url: str | None = None,
    timeout: int = 30,
) -> LLMBackend | None:
    """
    Factory: create and initialise the backend for ``provider``.

    Returns
    -------
    An initialised :class:`LLMBackend`, or ``None`` when the provider is
    ``"none"``, unknown, missing its key or SDK, or fails to initialise.
    """
    provider = (provider or "").strip().lower()
    if provider in ("none", ""):
        logger.info("LLM provider set to 'none'; AI features disabled")
        return None

    backend: LLMBackend
    if provider == "openai":
        backend = OpenAIBackend(
            api_key=api_key,
            model=model or DEFAULT_MODELS["openai"],
            base_url=base_url or None,
            timeout=timeout,
        )
    elif provider == "anthropic":
        backend = AnthropicBackend(api_key=api_key, model=model or DEFAULT_MODELS["anthropic"], timeout=timeout)
    else:
        logger.error("Unknown LLM provider '%s'", provider)
        return None

    if backend.initialize():
        return backend
    logger.warning("LLM backend '%s' failed to initialise; AI features disabled", provider)
    return None
