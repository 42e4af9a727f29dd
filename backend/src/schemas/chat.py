# schemas/chat.py
from __future__ import annotations
from typing import Optional

from pydantic import BaseModel


class ModelParams(BaseModel):
    model: Optional[str] = None
    max_output_tokens: int = 1000
    temperature: float = 0.7


class ChatReply(BaseModel):
    reply: str
    session_id: str


class ErrorOut(BaseModel):
    error: str
    error_type: str
    session_id: Optional[str] = None
