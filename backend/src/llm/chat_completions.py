# llm/chat_completions.py
from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from backend.src.core.logging import get_logger
from backend.src.schemas.chat import ModelParams
from backend.src.schemas.turns import ImagePart, TextPart, Turn

logger = get_logger("supportchat.llm.chat")


def _content_blocks(turn: Turn) -> Any:
    if isinstance(turn.content, str):
        return turn.content
    blocks: List[Dict[str, Any]] = []
    for p in turn.content:
        if isinstance(p, TextPart):
            blocks.append({"type": "text", "text": p.text})
        elif isinstance(p, ImagePart):
            blocks.append({"type": "image_url", "image_url": {"url": p.data_uri}})
    return blocks


def to_lc_messages(turns: List[Turn]) -> List[BaseMessage]:
    out: List[BaseMessage] = []
    for t in turns:
        if t.role == "system":
            out.append(SystemMessage(content=t.text))
        elif t.role == "assistant":
            out.append(AIMessage(content=t.text))
        else:
            out.append(HumanMessage(content=_content_blocks(t)))
    return out


def message_text(msg: Any) -> str:
    content = getattr(msg, "content", msg)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = []
        for b in content:
            if isinstance(b, str):
                texts.append(b)
            elif isinstance(b, dict) and b.get("type") == "text":
                texts.append(str(b.get("text") or ""))
        return "".join(texts)
    return str(content or "")


class ChatCompletionsCollaborator:
    """Stateless chat-completions call through a LangChain chat model."""

    def __init__(
        self,
        provider: str,
        default_model: str,
        build: Callable[..., Any],
        timeout: Optional[float] = None,
    ):
        self.provider = provider
        self.default_model = default_model
        self._build = build
        self._timeout = timeout

    async def complete(self, turns: List[Turn], params: ModelParams) -> str:
        model = params.model or self.default_model
        llm = self._build(model, params.temperature, params.max_output_tokens, self._timeout)
        logger.info(
            "LLM_REQUEST provider=%s model=%s turns=%s images=%s",
            self.provider,
            model,
            len(turns),
            sum(len(t.images) for t in turns),
        )
        msg = await llm.ainvoke(to_lc_messages(turns))
        return message_text(msg)
