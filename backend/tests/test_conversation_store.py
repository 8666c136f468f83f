"""
Unit tests for the conversation store.
"""

import pytest

from tibrah_assistant.core.conversation_store import (
    ConversationStore,
    MAX_CONTEXT_MESSAGES,
    MAX_CONVERSATIONS,
    MAX_MESSAGES_PER_CONVERSATION,
    STORAGE_KEY,
)
from tibrah_assistant.models import MessageMetadata


class TestConversationLifecycle:

    @pytest.mark.asyncio
    async def test_add_message_starts_conversation_lazily(self, conversation_store):
        assert conversation_store.get_current_conversation() is None

        message = await conversation_store.add_message("user", "مرحبا")

        current = conversation_store.get_current_conversation()
        assert current is not None
        assert current.id.startswith("conv_")
        assert message.id.startswith("msg_")
        assert [m.content for m in current.messages] == ["مرحبا"]
        assert current.last_message_at == message.timestamp

    @pytest.mark.asyncio
    async def test_start_resumes_known_conversation(self, conversation_store):
        first = await conversation_store.start()
        second = await conversation_store.start()

        assert await conversation_store.start(first) == first
        assert conversation_store.get_current_conversation().id == first
        assert second != first

    @pytest.mark.asyncio
    async def test_start_with_unknown_id_creates_new(self, conversation_store):
        conv_id = await conversation_store.start("conv_missing")
        assert conv_id != "conv_missing"
        assert conversation_store.get_conversation(conv_id) is not None

    @pytest.mark.asyncio
    async def test_explicit_conversation_id_does_not_touch_current(self, conversation_store):
        first = await conversation_store.start()
        second = await conversation_store.start()

        await conversation_store.add_message("user", "للأولى", conversation_id=first)

        assert len(conversation_store.get_conversation(first).messages) == 1
        assert conversation_store.get_conversation(second).messages == []
        assert conversation_store.get_current_conversation().id == second

    @pytest.mark.asyncio
    async def test_metadata_is_kept(self, conversation_store):
        message = await conversation_store.add_message(
            "user", "نص", metadata=MessageMetadata(health_context=True)
        )
        assert message.metadata.health_context is True


class TestBounds:

    @pytest.mark.asyncio
    async def test_messages_trimmed_fifo(self, conversation_store):
        for i in range(MAX_MESSAGES_PER_CONVERSATION + 5):
            await conversation_store.add_message("user", f"message {i}")

        messages = conversation_store.get_current_conversation().messages
        assert len(messages) == MAX_MESSAGES_PER_CONVERSATION
        assert messages[0].content == "message 5"
        assert messages[-1].content == f"message {MAX_MESSAGES_PER_CONVERSATION + 4}"

    @pytest.mark.asyncio
    async def test_context_window(self, conversation_store):
        for i in range(30):
            role = "user" if i % 2 == 0 else "assistant"
            await conversation_store.add_message(role, f"turn {i}")

        context = conversation_store.get_context()
        assert len(context) == MAX_CONTEXT_MESSAGES
        assert context[0] == {"role": "user", "content": "turn 10"}
        assert context[-1] == {"role": "assistant", "content": "turn 29"}

    @pytest.mark.asyncio
    async def test_unknown_ids_do_not_grow_the_store(self, storage, conversation_store):
        for i in range(MAX_CONVERSATIONS * 3):
            await conversation_store.add_message("user", f"message {i}", conversation_id=f"conv_unknown_{i}")

        live = conversation_store.get_all_conversations()
        restored = ConversationStore(storage)
        await restored.load()

        assert len(live) == MAX_CONVERSATIONS
        assert {c.id for c in live} == {c.id for c in restored.get_all_conversations()}
        assert conversation_store.get_current_conversation().messages[-1].content == (
            f"message {MAX_CONVERSATIONS * 3 - 1}"
        )

    @pytest.mark.asyncio
    async def test_eviction_drops_least_recent(self, conversation_store):
        oldest = await conversation_store.start()
        await conversation_store.add_message("user", "قديمة", conversation_id=oldest)
        for _ in range(MAX_CONVERSATIONS):
            await conversation_store.start()

        assert conversation_store.get_conversation(oldest) is None
        assert len(conversation_store.get_all_conversations()) == MAX_CONVERSATIONS

    def test_context_empty_without_conversation(self, conversation_store):
        assert conversation_store.get_context() == []
        assert conversation_store.get_context("conv_missing") == []


class TestTopics:

    @pytest.mark.asyncio
    async def test_topics_detected_from_user_turns(self, conversation_store):
        await conversation_store.add_message("user", "عندي صداع وقلة نوم")
        assert conversation_store.get_current_conversation().topics == ["نوم", "ألم"]

    @pytest.mark.asyncio
    async def test_assistant_turns_do_not_tag(self, conversation_store):
        await conversation_store.add_message("assistant", "نصائح للنوم والتغذية")
        assert conversation_store.get_current_conversation().topics == []

    @pytest.mark.asyncio
    async def test_topics_are_recency_ordered(self, conversation_store):
        await conversation_store.add_message("user", "عندي صداع وقلة نوم")
        await conversation_store.add_message("user", "أشعر بقلق")
        await conversation_store.add_message("user", "نوم متقطع")

        assert conversation_store.get_current_conversation().topics == ["ألم", "مزاج", "نوم"]

    def test_custom_topic_table(self, storage):
        store = ConversationStore(storage, topic_keywords={"sleep": ["sleep", "insomnia"]})
        assert store.detect_topics("I have INSOMNIA") == ["sleep"]
        assert store.detect_topics("hello") == []


class TestSummaryAndName:

    def test_empty_store(self, conversation_store):
        assert conversation_store.generate_summary() == "محادثة جديدة"
        assert conversation_store.get_user_name() is None

    @pytest.mark.asyncio
    async def test_user_name_from_introduction(self, conversation_store):
        await conversation_store.add_message("user", "اسمي أحمد")
        assert conversation_store.get_user_name() == "أحمد"
        assert conversation_store.generate_summary() == "محادثة مع أحمد. 1 رسالة."

    @pytest.mark.asyncio
    async def test_name_only_from_user_turns(self, conversation_store):
        await conversation_store.add_message("assistant", "أنا مساعدك")
        assert conversation_store.get_user_name() is None

    @pytest.mark.asyncio
    async def test_summary_lists_topics(self, conversation_store):
        await conversation_store.add_message("user", "عندي صداع وقلة نوم")
        await conversation_store.add_message("assistant", "سلامتك")

        summary = conversation_store.generate_summary()
        assert summary == "المواضيع: نوم، ألم. 2 رسالة."
        assert conversation_store.get_current_conversation().summary == summary


class TestPersistence:

    @pytest.mark.asyncio
    async def test_round_trip(self, storage, conversation_store):
        await conversation_store.add_message("user", "اسمي سارة")
        await conversation_store.add_message("assistant", "أهلاً سارة")
        conv_id = conversation_store.get_current_conversation().id

        restored = ConversationStore(storage)
        await restored.load()

        conversation = restored.get_conversation(conv_id)
        assert [m.content for m in conversation.messages] == ["اسمي سارة", "أهلاً سارة"]
        assert [m.role for m in conversation.messages] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_only_most_recent_conversations_persisted(self, storage, conversation_store):
        for i in range(MAX_CONVERSATIONS + 2):
            await conversation_store.start()
            await conversation_store.add_message("user", f"conversation {i}")

        restored = ConversationStore(storage)
        await restored.load()

        assert len(restored.get_all_conversations()) == MAX_CONVERSATIONS
        assert len(conversation_store.get_all_conversations()) == MAX_CONVERSATIONS

    @pytest.mark.asyncio
    async def test_corrupt_data_yields_empty_store(self, storage):
        await storage.save(STORAGE_KEY, "{not json")

        store = ConversationStore(storage)
        await store.load()

        assert store.get_all_conversations() == []

    @pytest.mark.asyncio
    async def test_missing_data_yields_empty_store(self, conversation_store):
        await conversation_store.load()
        assert conversation_store.get_all_conversations() == []


class TestClearing:

    @pytest.mark.asyncio
    async def test_clear_current(self, conversation_store):
        await conversation_store.add_message("user", "أولى")
        first = conversation_store.get_current_conversation().id
        await conversation_store.start()
        await conversation_store.add_message("user", "ثانية")

        await conversation_store.clear_current_conversation()

        assert conversation_store.get_current_conversation() is None
        assert [c.id for c in conversation_store.get_all_conversations()] == [first]

    @pytest.mark.asyncio
    async def test_clear_all_removes_stored_data(self, storage, conversation_store):
        await conversation_store.add_message("user", "مرحبا")
        assert await storage.exists(STORAGE_KEY)

        await conversation_store.clear_all()

        assert conversation_store.get_all_conversations() == []
        assert not await storage.exists(STORAGE_KEY)
