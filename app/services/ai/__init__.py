"""
AI Services
===========
LLM-backed plant-care advice.

Services:
- PlantCareAdvisor: care tips, symptom diagnosis and care-schedule suggestions
- LLM backends: hosted providers (OpenAI, Anthropic) behind one interface

All public symbols are importable via ``from app.services.ai import X``.
Imports are **lazy**: a provider SDK is only touched when a backend is
created, so the application starts without any of them installed.
"""

from __future__ import annotations

import importlib
from typing import Any

# ── Symbol → submodule mapping ──────────────────────────────────────
_LAZY_IMPORTS: dict[str, str] = {
    # llm_advisor
    "CareScheduleResult": "app.services.ai.llm_advisor",
    "CareTipsResult": "app.services.ai.llm_advisor",
    "DiagnosisResult": "app.services.ai.llm_advisor",
    "PlantCareAdvisor": "app.services.ai.llm_advisor",
    # llm_backends
    "AnthropicBackend": "app.services.ai.llm_backends",
    "LLMBackend": "app.services.ai.llm_backends",
    "LLMResponse": "app.services.ai.llm_backends",
    "OpenAIBackend": "app.services.ai.llm_backends",
    "create_backend": "app.services.ai.llm_backends",
}

__all__ = list(_LAZY_IMPORTS.keys())


def __getattr__(name: str) -> Any:
    """Lazy-load symbols on first access."""
    module_path = _LAZY_IMPORTS.get(name)
    if module_path is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = importlib.import_module(module_path)
    value = getattr(module, name)
    # Cache on the module so subsequent accesses skip __getattr__
    globals()[name] = value
    return value
