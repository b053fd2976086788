"""LangChain/LangSmith wiring driven by application settings."""

from __future__ import annotations

import os

from langchain_openai import ChatOpenAI

from reelpick.core.config import get_settings


def configure_langchain_env() -> None:
    """Export optional LangSmith tracing variables if provided in settings."""

    settings = get_settings()
    if settings.langchain_tracing_v2:
        os.environ.setdefault("LANGCHAIN_TRACING_V2", "true")
    if settings.langchain_api_key:
        os.environ.setdefault("LANGCHAIN_API_KEY", settings.langchain_api_key)
    if settings.langchain_project:
        os.environ.setdefault("LANGCHAIN_PROJECT", settings.langchain_project)


def build_chat_model(*, json_mode: bool = True):
    """Chat model used for movie suggestions, bound to JSON replies by default."""

    settings = get_settings()
    llm = ChatOpenAI(
        temperature=settings.openai_temperature,
        model=settings.openai_model,
        api_key=settings.openai_api_key,
    )
    if json_mode:
        return llm.bind(response_format={"type": "json_object"})
    return llm
