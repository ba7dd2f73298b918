"""
Data types shared by the gateway client, translator and stream parser.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

MESSAGE_ROLES = ("system", "user", "assistant")

# A content part is a dict such as {"type": "text", "text": "..."} or
# {"type": "image", ...}; only text parts survive flattening.
MessageContent = Union[str, List[Dict[str, Any]]]


class FinishReason(str, Enum):
    """Why a generation ended"""
    STOP = "stop"
    LENGTH = "length"
    CONTENT_FILTER = "content-filter"
    TOOL_CALLS = "tool-calls"
    ERROR = "error"
    UNKNOWN = "unknown"


@dataclass
class Message:
    """A single chat message

    Attributes:
        role: One of system, user, assistant
        content: Plain text or a list of typed content parts
    """
    role: str
    content: MessageContent = ""

    def __post_init__(self) -> None:
        if self.role not in MESSAGE_ROLES:
            raise ValueError(f"Unsupported message role: {self.role!r} (expected one of {', '.join(MESSAGE_ROLES)})")


@dataclass
class ChatRequest:
    """Vendor-neutral chat request

    Optional sampling parameters left as None are omitted from the wire request.
    """
    model: str
    messages: List[Message]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    repetition_penalty: Optional[float] = None
    stream: bool = False


@dataclass(frozen=True)
class Usage:
    """Token usage totals"""
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Usage":
        """Build from a vendor usage object.

        Raises:
            TypeError, ValueError: If the object or its counts are not numeric
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise TypeError(f"usage must be an object, got {type(data).__name__}")
        return cls(
            prompt_tokens=int(data.get("prompt_tokens") or 0),
            completion_tokens=int(data.get("completion_tokens") or 0),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class ChatResult:
    """Composed result of a non-streaming call"""
    text: str
    finish_reason: FinishReason
    usage: Usage = field(default_factory=Usage)


@dataclass(frozen=True)
class TextDelta:
    """Incremental text fragment"""
    text: str
    type: str = field(default="text-delta", init=False)


@dataclass(frozen=True)
class UsageUpdate:
    """Latest token usage totals reported by the server"""
    usage: Usage
    type: str = field(default="usage", init=False)


@dataclass(frozen=True)
class Finish:
    """Terminal event of a successful stream"""
    reason: FinishReason
    usage: Usage
    type: str = field(default="finish", init=False)


@dataclass(frozen=True)
class Error:
    """Terminal event of a failed stream; nothing follows it"""
    detail: str
    type: str = field(default="error", init=False)


StreamEvent = Union[TextDelta, UsageUpdate, Finish, Error]
