import pytest
from unittest.mock import AsyncMock

from kanban.schemas.events import DomainEvent, EventType
from kanban.services import event_service
from kanban.services.event_service import EventDispatcher


class TestEventDispatcher:
    """Тесты внутреннего диспетчера событий"""

    def setup_method(self):
        self.dispatcher = EventDispatcher()

    @pytest.mark.asyncio
    async def test_emit_calls_subscribers(self):
        handler = AsyncMock()
        self.dispatcher.subscribe(EventType.CARD_DELETED, handler)

        event = DomainEvent(event=EventType.CARD_DELETED, data={"board_id": 1, "card_id": 5})
        await self.dispatcher.emit(event)

        handler.assert_awaited_once_with(event)

    @pytest.mark.asyncio
    async def test_other_event_types_not_delivered(self):
        handler = AsyncMock()
        self.dispatcher.subscribe(EventType.CARD_CREATED, handler)

        await self.dispatcher.emit(
            DomainEvent(event=EventType.CARD_DELETED, data={"board_id": 1, "card_id": 5})
        )

        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_required_field(self):
        """Событие без обязательных полей не отправляется"""
        handler = AsyncMock()
        self.dispatcher.subscribe(EventType.CARD_MOVED, handler)

        with pytest.raises(ValueError) as exc_info:
            await self.dispatcher.emit(
                DomainEvent(event=EventType.CARD_MOVED, data={"card_id": 1, "board_id": 2})
            )

        assert "old_column_id" in str(exc_info.value)
        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_stop_others(self):
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        self.dispatcher.subscribe(EventType.BOARD_DELETED, failing)
        self.dispatcher.subscribe(EventType.BOARD_DELETED, healthy)

        await self.dispatcher.emit(DomainEvent(event=EventType.BOARD_DELETED, data={"board_id": 3}))

        failing.assert_awaited_once()
        healthy.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        handler = AsyncMock()
        self.dispatcher.subscribe(EventType.BOARD_DELETED, handler)
        self.dispatcher.unsubscribe(EventType.BOARD_DELETED, handler)

        await self.dispatcher.emit(DomainEvent(event=EventType.BOARD_DELETED, data={"board_id": 3}))

        handler.assert_not_awaited()


class TestNotifyHelpers:
    """Хелперы формируют полезную нагрузку событий"""

    def teardown_method(self):
        event_service.dispatcher.clear()

    @pytest.mark.asyncio
    async def test_notify_card_moved_payload(self):
        handler = AsyncMock()
        event_service.dispatcher.subscribe(EventType.CARD_MOVED, handler)

        await event_service.notify_card_moved(7, 1, 10, 11, 0)

        event = handler.await_args.args[0]
        assert event.event == EventType.CARD_MOVED
        assert event.data == {
            "card_id": 7,
            "board_id": 1,
            "old_column_id": 10,
            "new_column_id": 11,
            "new_position": 0,
        }

    @pytest.mark.asyncio
    async def test_notify_card_updated_payload(self):
        handler = AsyncMock()
        event_service.dispatcher.subscribe(EventType.CARD_UPDATED, handler)

        await event_service.notify_card_updated(7, 1, ["title"])

        event = handler.await_args.args[0]
        assert event.data["updated_fields"] == ["title"]
        assert event.data["board_id"] == 1
