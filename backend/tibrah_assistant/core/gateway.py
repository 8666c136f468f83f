"""
AI Gateway - Builds the prompt, walks the provider fallback chain and
records successful exchanges.

Providers are tried strictly in order, one at a time, each under its own
timeout. A provider that raises, times out or answers with nothing is logged
and skipped. Only when every provider has failed does the caller see an
error, and then never a fabricated answer.
"""

import asyncio
import logging
import re
import time
import weakref
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import ProviderError, ProviderExhaustedError
from ..llm.base import LLMMessage, LLMProvider
from ..models import ChatRequest, MessageMetadata
from .conversation_store import ConversationStore, MAX_CONTEXT_MESSAGES
from .health_memory import HealthMemory
from .logging_config import truncate_large_data
from .prompts import build_system_prompt
from .suggestions import generate_suggestions

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 5000
_TAG_RE = re.compile(r"<[^>]*>")
_HISTORY_ROLES = {"user": "user", "assistant": "assistant", "model": "assistant"}


def sanitize_text(value: object, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """Strip HTML tags, trim and truncate; non-strings become ""."""
    if not isinstance(value, str):
        return ""
    return _TAG_RE.sub("", value).strip()[:max_length]


@dataclass
class ChatResult:
    text: str
    source: str
    conversation_id: str
    suggestions: List[str] = field(default_factory=list)


class AIGateway:
    """
    Request handler for the assistant.

    Requests naming the same conversation are serialized so their turns land
    in arrival order; different conversations proceed independently.
    """

    def __init__(
        self,
        providers: Sequence[LLMProvider],
        conversation_store: ConversationStore,
        health_memory: HealthMemory,
        timeout: float = 30.0,
    ):
        """
        Args:
            providers: Fallback chain, highest priority first
            conversation_store: Source of history, sink of successful turns
            health_memory: Source of the profile block, sink of mined facts
            timeout: Seconds allowed per provider call
        """
        self.providers = list(providers)
        self.conversation_store = conversation_store
        self.health_memory = health_memory
        self.timeout = timeout
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def _history(self, request: ChatRequest, conversation_id: Optional[str]) -> List[LLMMessage]:
        """Request-supplied history when present, else the target conversation's context window."""
        if request.history:
            turns = [{"role": t.role, "content": t.content} for t in request.history]
        elif conversation_id:
            turns = self.conversation_store.get_context(conversation_id)
        else:
            turns = []

        history = []
        for turn in turns[-MAX_CONTEXT_MESSAGES:]:
            role = _HISTORY_ROLES.get(turn["role"])
            if role and turn["content"]:
                history.append(LLMMessage.text(role, turn["content"]))
        return history

    def build_messages(self, request: ChatRequest, conversation_id: Optional[str] = None) -> List[LLMMessage]:
        system_prompt = build_system_prompt(
            request.health_context,
            self.health_memory.build_health_context(),
        )
        return (
            [LLMMessage.text("system", system_prompt)]
            + self._history(request, conversation_id)
            + [LLMMessage.text("user", request.message)]
        )

    async def generate(self, messages: List[LLMMessage]) -> Tuple[str, str]:
        """
        Walk the fallback chain.

        Returns:
            Tuple[str, str]: (provider tag, answer text)

        Raises:
            ProviderExhaustedError: No provider produced an answer
        """
        attempted = []
        for provider in self.providers:
            attempted.append(provider.name)
            start_time = time.time()
            try:
                response = await asyncio.wait_for(
                    provider.chat_completion(messages), timeout=self.timeout
                )
                text = (response.content or "").strip()
                if not text:
                    raise ProviderError(provider.name, "empty response")
            except asyncio.TimeoutError:
                logger.warning(
                    f"Provider {provider.name} timed out after {self.timeout}s, trying next",
                    extra={"extra_fields": {"provider": provider.name, "timeout": self.timeout}}
                )
                continue
            except Exception as e:
                logger.warning(
                    f"Provider {provider.name} failed, trying next: {e}",
                    extra={"extra_fields": {
                        "provider": provider.name,
                        "duration_ms": round((time.time() - start_time) * 1000, 2),
                        "error": str(e),
                    }}
                )
                continue

            logger.info(f"Provider {provider.name} answered")
            return provider.name, text

        logger.error(
            "All AI providers failed",
            extra={"extra_fields": {"attempted": attempted}}
        )
        raise ProviderExhaustedError(attempted)

    async def _resolve_conversation(self, conversation_id: Optional[str], explicit: bool) -> str:
        """The still-tracked target conversation, else a fresh one."""
        if conversation_id and self.conversation_store.get_conversation(conversation_id) is not None:
            if explicit:
                await self.conversation_store.start(conversation_id)
            return conversation_id
        return await self.conversation_store.start()

    async def _exchange(self, request: ChatRequest, conversation_id: Optional[str]) -> ChatResult:
        """Prompt with conversation_id's context and record the turns there on success."""
        message = request.message
        source, text = await self.generate(self.build_messages(request, conversation_id))

        conversation_id = await self._resolve_conversation(
            conversation_id, explicit=bool(request.conversation_id)
        )
        await self.conversation_store.add_message(
            "user", message,
            metadata=MessageMetadata(health_context=bool(request.health_context)),
            conversation_id=conversation_id,
        )
        await self.conversation_store.add_message("assistant", text, conversation_id=conversation_id)
        await self.health_memory.extract_from_message(message)

        return ChatResult(
            text=text,
            source=source,
            conversation_id=conversation_id,
            suggestions=generate_suggestions(message, text),
        )

    async def handle(self, request: ChatRequest) -> ChatResult:
        """
        Answer one chat request.

        The request's message must already be validated and non-empty. Store
        side effects happen only after a provider has answered. A request
        without a conversation id is bound to the conversation that is
        current when it arrives.

        Raises:
            ProviderExhaustedError: Every provider failed or none is configured
        """
        message = request.message
        logger.info(
            f"Chat request received: {truncate_large_data(message, max_length=50)}",
            extra={"extra_fields": {
                "message_length": len(message),
                "has_health_context": bool(request.health_context),
                "history_turns": len(request.history or []),
            }}
        )

        if request.conversation_id:
            async with self._lock_for(request.conversation_id):
                return await self._exchange(request, request.conversation_id)

        # anonymous requests queue here so a new conversation is only started once
        async with self._lock_for("__current__"):
            current = self.conversation_store.get_current_conversation()
            if current is None:
                return await self._exchange(request, None)
            async with self._lock_for(current.id):
                return await self._exchange(request, current.id)
