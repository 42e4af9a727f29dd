# schemas/turns.py
from __future__ import annotations
import base64
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

Role = Literal["system", "user", "assistant"]


class TextPart(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    """Inline image attached to a user turn (base64 payload + mime)."""

    model_config = ConfigDict(frozen=True)

    type: Literal["image"] = "image"
    mime: str = "image/png"
    data_b64: str
    name: str = "screenshot.png"

    @classmethod
    def from_bytes(cls, data: bytes, mime: str, name: Optional[str] = None) -> "ImagePart":
        return cls(mime=mime, data_b64=base64.b64encode(data).decode("ascii"), name=name or "screenshot.png")

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime};base64,{self.data_b64}"

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data_b64)


ContentPart = Union[TextPart, ImagePart]


class Turn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: Union[str, List[ContentPart]]

    @property
    def text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "\n".join(p.text for p in self.content if isinstance(p, TextPart))

    @property
    def images(self) -> List[ImagePart]:
        if isinstance(self.content, str):
            return []
        return [p for p in self.content if isinstance(p, ImagePart)]

    def with_text_prefix(self, prefix: str) -> "Turn":
        if isinstance(self.content, str):
            return Turn(role=self.role, content=prefix + self.content)
        parts: List[ContentPart] = list(self.content)
        for i, p in enumerate(parts):
            if isinstance(p, TextPart):
                parts[i] = TextPart(text=prefix + p.text)
                return Turn(role=self.role, content=parts)
        return Turn(role=self.role, content=[TextPart(text=prefix.rstrip()), *parts])

    def without_images(self) -> "Turn":
        """Copy with image payloads swapped for `[image: name]` placeholders."""
        if not self.images:
            return self
        parts: List[ContentPart] = [
            TextPart(text=f"[image: {p.name}]") if isinstance(p, ImagePart) else p for p in self.content
        ]
        return Turn(role=self.role, content=parts)


def system_turn(text: str) -> Turn:
    return Turn(role="system", content=text)


def user_turn(text: str, image: Optional[ImagePart] = None) -> Turn:
    if image is None:
        return Turn(role="user", content=text)
    return Turn(role="user", content=[TextPart(text=text), image])


def assistant_turn(text: str) -> Turn:
    return Turn(role="assistant", content=text)
