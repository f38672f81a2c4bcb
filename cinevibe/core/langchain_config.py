"""Utilities to configure LangChain/LangSmith tracing from settings."""

from __future__ import annotations

import os

from cinevibe.core.config import get_settings


def configure_langchain_env() -> None:
    """Export optional LangSmith env vars so curator calls get traced."""

    settings = get_settings()
    if settings.langchain_tracing_v2:
        os.environ.setdefault("LANGCHAIN_TRACING_V2", "true")
    if settings.langchain_api_key:
        os.environ.setdefault("LANGCHAIN_API_KEY", settings.langchain_api_key)
    if settings.langchain_project:
        os.environ.setdefault("LANGCHAIN_PROJECT", settings.langchain_project)
