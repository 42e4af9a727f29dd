# llm/providers.py
from __future__ import annotations
from typing import Optional

from langchain_anthropic import ChatAnthropic
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from backend.src.llm.base import common_kwargs


def build_openai(model: str, temperature: float, max_tokens: int, timeout: Optional[float] = None):
    return ChatOpenAI(model=model, **common_kwargs(temperature, max_tokens, timeout))


def build_anthropic(model: str, temperature: float, max_tokens: int, timeout: Optional[float] = None):
    return ChatAnthropic(model=model, **common_kwargs(temperature, max_tokens, timeout))


def build_gemini(model: str, temperature: float, max_tokens: int, timeout: Optional[float] = None):
    # reads GOOGLE_API_KEY from the environment
    return ChatGoogleGenerativeAI(model=model, **common_kwargs(temperature, max_tokens, timeout))
