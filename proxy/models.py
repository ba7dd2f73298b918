"""
Pydantic models for the OpenAI-compatible endpoint.
"""
from typing import Dict, Any, List, Optional, Union
from pydantic import BaseModel

from gateway import ChatRequest, Message


class OpenAIMessage(BaseModel):
    """Chat message"""
    role: str
    content: Optional[Union[str, List[Dict[str, Any]]]] = None


class OpenAIChatCompletionRequest(BaseModel):
    """OpenAI chat completion request"""
    model: Optional[str] = None
    messages: List[OpenAIMessage]
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    # GigaChat has no presence penalty; it is forwarded as repetition_penalty
    presence_penalty: Optional[float] = None
    repetition_penalty: Optional[float] = None
    stream: Optional[bool] = False

    def to_chat_request(self, default_model: str) -> ChatRequest:
        """Build the gateway request

        Raises:
            ValueError: If a message uses a role GigaChat does not accept
        """
        repetition_penalty = self.repetition_penalty
        if repetition_penalty is None:
            repetition_penalty = self.presence_penalty

        return ChatRequest(
            model=self.model or default_model,
            messages=[Message(role=m.role, content=m.content or "") for m in self.messages],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            top_p=self.top_p,
            repetition_penalty=repetition_penalty,
            stream=bool(self.stream),
        )
