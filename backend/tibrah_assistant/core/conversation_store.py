"""
Conversation Store - Session-scoped chat history with bounded size.

Keeps at most MAX_CONVERSATIONS conversations in process memory, evicting
the least recently active ones, tags user turns with coarse topics and
mirrors the conversations to durable storage after each mutation. Missing or
corrupt stored data degrades to an empty store.
"""

import logging
import re
from typing import Dict, List, Optional

from pydantic import ValidationError

from ..models import ChatMessage, Conversation, ConversationArchive, MessageMetadata
from ..storage import StorageInterface

logger = logging.getLogger(__name__)

STORAGE_KEY = "conversations/tibrah_conversations.json"
MAX_CONVERSATIONS = 10
MAX_MESSAGES_PER_CONVERSATION = 50
MAX_CONTEXT_MESSAGES = 20  # window handed to the model, smaller than the stored history
MAX_TOPICS = 10

# topic -> keywords; any keyword found in a user turn tags the conversation
TOPIC_KEYWORDS: Dict[str, List[str]] = {
    "صحة": ["صحة", "مرض", "علاج", "دواء", "طبيب"],
    "نوم": ["نوم", "أرق", "نعاس", "استيقاظ"],
    "تغذية": ["أكل", "طعام", "تغذية", "حمية", "سعرات"],
    "رياضة": ["رياضة", "تمارين", "مشي", "جري"],
    "مزاج": ["مزاج", "حزن", "فرح", "قلق", "توتر", "اكتئاب"],
    "طاقة": ["طاقة", "تعب", "إرهاق", "نشاط"],
    "ألم": ["ألم", "وجع", "صداع", "ظهر", "رقبة"],
    "هضم": ["هضم", "معدة", "بطن", "قولون", "غثيان"],
}

NAME_PATTERNS = [
    re.compile(r"اسمي\s+(.+?)(?:\s|$|،|\.)"),
    re.compile(r"أنا\s+(.+?)(?:\s|$|،|\.)"),
    re.compile(r"انا\s+(.+?)(?:\s|$|،|\.)"),
]
MAX_NAME_LENGTH = 20


class ConversationStore:
    """
    In-memory conversation map with a "current conversation" pointer.

    Mutating methods are coroutines because they persist; reads are plain
    methods and never touch storage.
    """

    def __init__(self, storage: StorageInterface,
                 topic_keywords: Optional[Dict[str, List[str]]] = None):
        """
        Args:
            storage: Durable key/value backend
            topic_keywords: Topic detection table, defaults to TOPIC_KEYWORDS
        """
        self.storage = storage
        self.topic_keywords = topic_keywords if topic_keywords is not None else TOPIC_KEYWORDS
        self._conversations: Dict[str, Conversation] = {}
        self._current_id: Optional[str] = None

    async def load(self) -> None:
        """Restore conversations from storage; anything unreadable yields an empty store."""
        content = await self.storage.load(STORAGE_KEY)
        if content is None:
            return
        try:
            archive = ConversationArchive.model_validate_json(content)
        except (ValidationError, ValueError) as e:
            logger.error(f"Failed to load conversations, starting empty: {e}")
            return
        self._conversations = {conv.id: conv for conv in archive.conversations}
        logger.info(f"Loaded {len(self._conversations)} conversations")

    async def _persist(self) -> None:
        archive = ConversationArchive(conversations=self.get_all_conversations())
        saved = await self.storage.save(STORAGE_KEY, archive.model_dump_json())
        if not saved:
            logger.warning("Conversation store not persisted, keeping in-memory state only")

    async def start(self, existing_id: Optional[str] = None) -> str:
        """
        Start or continue a conversation.

        Args:
            existing_id: Conversation to resume if it is still tracked

        Returns:
            str: Id of the now-current conversation
        """
        if existing_id and existing_id in self._conversations:
            self._current_id = existing_id
            return existing_id

        conversation = Conversation()
        self._conversations[conversation.id] = conversation
        self._current_id = conversation.id
        self._evict()
        await self._persist()
        return conversation.id

    def _evict(self) -> None:
        """Drop the least recently active conversations beyond MAX_CONVERSATIONS, sparing the current one."""
        excess = len(self._conversations) - MAX_CONVERSATIONS
        if excess <= 0:
            return
        for conversation in reversed(self.get_all_conversations()):
            if excess == 0:
                break
            if conversation.id == self._current_id:
                continue
            del self._conversations[conversation.id]
            excess -= 1
        logger.debug(f"Evicted stale conversations, {len(self._conversations)} tracked")

    async def add_message(
        self,
        role: str,
        content: str,
        metadata: Optional[MessageMetadata] = None,
        conversation_id: Optional[str] = None,
    ) -> ChatMessage:
        """
        Append a message, starting a conversation lazily if none is active.

        Args:
            role: "user", "assistant" or "system"
            content: Message text
            metadata: Optional annotations
            conversation_id: Target conversation; defaults to the current one

        Returns:
            ChatMessage: The stored message
        """
        conversation = self._conversations.get(conversation_id or self._current_id or "")
        if conversation is None:
            await self.start(conversation_id)
            conversation = self._conversations[self._current_id]

        message = ChatMessage(role=role, content=content, metadata=metadata)
        conversation.messages.append(message)
        conversation.last_message_at = message.timestamp

        if len(conversation.messages) > MAX_MESSAGES_PER_CONVERSATION:
            conversation.messages = conversation.messages[-MAX_MESSAGES_PER_CONVERSATION:]

        if role == "user":
            detected = self.detect_topics(content)
            if detected:
                topics = [t for t in conversation.topics if t not in detected] + detected
                conversation.topics = topics[-MAX_TOPICS:]

        conversation.summary = self._summarize(conversation)
        await self._persist()
        return message

    def get_context(self, conversation_id: Optional[str] = None) -> List[Dict[str, str]]:
        """Last MAX_CONTEXT_MESSAGES turns as {role, content} dicts, oldest first."""
        conversation = self._conversations.get(conversation_id or self._current_id or "")
        if conversation is None:
            return []
        return [
            {"role": msg.role, "content": msg.content}
            for msg in conversation.messages[-MAX_CONTEXT_MESSAGES:]
        ]

    def get_current_conversation(self) -> Optional[Conversation]:
        if not self._current_id:
            return None
        return self._conversations.get(self._current_id)

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def get_all_conversations(self) -> List[Conversation]:
        """All tracked conversations, most recently active first."""
        return sorted(self._conversations.values(), key=lambda c: c.last_message_at, reverse=True)

    async def clear_current_conversation(self) -> None:
        if self._current_id:
            self._conversations.pop(self._current_id, None)
            self._current_id = None
            await self._persist()

    async def clear_all(self) -> None:
        self._conversations.clear()
        self._current_id = None
        await self.storage.delete(STORAGE_KEY)

    def get_user_name(self) -> Optional[str]:
        """Best-effort name from self-introductions in the current conversation."""
        conversation = self.get_current_conversation()
        if conversation is None:
            return None
        return self._find_user_name(conversation)

    def _find_user_name(self, conversation: Conversation) -> Optional[str]:
        for msg in conversation.messages:
            if msg.role != "user":
                continue
            for pattern in NAME_PATTERNS:
                match = pattern.search(msg.content)
                if match and match.group(1) and len(match.group(1)) < MAX_NAME_LENGTH:
                    return match.group(1).strip()
        return None

    def detect_topics(self, text: str) -> List[str]:
        lowered = text.lower()
        return [
            topic for topic, keywords in self.topic_keywords.items()
            if any(kw in lowered for kw in keywords)
        ]

    def generate_summary(self) -> str:
        """Templated summary of the current conversation."""
        conversation = self.get_current_conversation()
        if conversation is None:
            return "محادثة جديدة"
        return self._summarize(conversation)

    def _summarize(self, conversation: Conversation) -> str:
        if not conversation.messages:
            return "محادثة جديدة"

        summary = ""
        user_name = self._find_user_name(conversation)
        if user_name:
            summary += f"محادثة مع {user_name}. "
        if conversation.topics:
            summary += f"المواضيع: {'، '.join(conversation.topics[:3])}. "
        summary += f"{len(conversation.messages)} رسالة."
        return summary
