from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional

from kanban.schemas.events import DomainEvent, EventType
from kanban.logs.server_log import api_logger


EventHandler = Callable[[DomainEvent], Awaitable[None]]

# Поля, без которых событие не отправляется
REQUIRED_FIELDS: Dict[EventType, List[str]] = {
    EventType.BOARD_UPDATED: ["board_id", "board"],
    EventType.BOARD_DELETED: ["board_id"],
    EventType.COLUMNS_REORDERED: ["board_id", "columns"],
    EventType.CARD_CREATED: ["board_id", "card"],
    EventType.CARD_UPDATED: ["card_id", "board_id", "updated_fields"],
    EventType.CARD_MOVED: ["card_id", "board_id", "old_column_id", "new_column_id", "new_position"],
    EventType.CARD_DELETED: ["board_id", "card_id"],
    EventType.BOARD_SHARED: ["board_id", "user_id"],
    EventType.SHARE_REMOVED: ["board_id", "user_id"],
    EventType.COMMENT_ADDED: ["board_id", "card_id", "comment"],
    EventType.COMMENT_DELETED: ["board_id", "card_id", "comment_id"],
}


class EventDispatcher:
    """In-process publisher for domain events.

    Subscribers (a notification layer, an audit log, tests) register per
    event type. Events are emitted after the mutation is committed, so a
    failing subscriber is logged and never undoes the change.
    """

    def __init__(self):
        self.subscribers: Dict[EventType, List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        self.subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        if handler in self.subscribers.get(event_type, []):
            self.subscribers[event_type].remove(handler)

    def clear(self) -> None:
        self.subscribers.clear()

    def _validate(self, event: DomainEvent) -> None:
        for field in REQUIRED_FIELDS.get(event.event, []):
            if field not in event.data:
                raise ValueError(f"Missing required field '{field}' for event '{event.event.value}'")

    async def emit(self, event: DomainEvent) -> None:
        self._validate(event)

        handlers = list(self.subscribers.get(event.event, []))
        api_logger.info(
            f"Event: '{event.event.value}' for board {event.data.get('board_id')} "
            f"to {len(handlers)} subscriber(s)"
        )

        for handler in handlers:
            try:
                await handler(event)
            except Exception as e:
                api_logger.error(
                    f"Event: subscriber {getattr(handler, '__name__', handler)} "
                    f"failed on '{event.event.value}': {str(e)}"
                )


dispatcher = EventDispatcher()


async def notify(event_type: EventType, data: Dict[str, Any], log_details: Optional[str] = None):
    """Emit an event through the global dispatcher"""
    await dispatcher.emit(DomainEvent(event=event_type, data=data))
    if log_details:
        api_logger.info(f"Event: {event_type.value} for board {data.get('board_id')}, {log_details}")


async def notify_board_updated(board_id: int, board_data: dict):
    await notify(EventType.BOARD_UPDATED, {"board_id": board_id, "board": board_data})


async def notify_board_deleted(board_id: int):
    await notify(EventType.BOARD_DELETED, {"board_id": board_id})


async def notify_columns_reordered(board_id: int, columns_data: List[Dict[str, Any]]):
    await notify(EventType.COLUMNS_REORDERED, {"board_id": board_id, "columns": columns_data})


async def notify_card_created(board_id: int, card_data: dict):
    await notify(EventType.CARD_CREATED, {"board_id": board_id, "card": card_data})


async def notify_card_updated(card_id: int, board_id: int, updated_fields: List[str]):
    data = {"card_id": card_id, "board_id": board_id, "updated_fields": updated_fields}
    await notify(EventType.CARD_UPDATED, data, f"card {card_id}, fields {updated_fields}")


async def notify_card_moved(
    card_id: int,
    board_id: int,
    old_column_id: int,
    new_column_id: int,
    new_position: int,
):
    data = {
        "card_id": card_id,
        "board_id": board_id,
        "old_column_id": old_column_id,
        "new_column_id": new_column_id,
        "new_position": new_position,
    }
    log_details = f"card {card_id} from column {old_column_id} to column {new_column_id} at {new_position}"
    await notify(EventType.CARD_MOVED, data, log_details)


async def notify_card_deleted(board_id: int, card_id: int):
    await notify(EventType.CARD_DELETED, {"board_id": board_id, "card_id": card_id}, f"card {card_id}")


async def notify_board_shared(board_id: int, user_id: int):
    await notify(EventType.BOARD_SHARED, {"board_id": board_id, "user_id": user_id}, f"user {user_id}")


async def notify_share_removed(board_id: int, user_id: int):
    await notify(EventType.SHARE_REMOVED, {"board_id": board_id, "user_id": user_id}, f"user {user_id}")


async def notify_comment_added(board_id: int, card_id: int, comment_data: Dict[str, Any]):
    data = {"board_id": board_id, "card_id": card_id, "comment": comment_data}
    await notify(EventType.COMMENT_ADDED, data, f"card {card_id}")


async def notify_comment_deleted(board_id: int, card_id: int, comment_id: int):
    data = {"board_id": board_id, "card_id": card_id, "comment_id": comment_id}
    await notify(EventType.COMMENT_DELETED, data, f"card {card_id}, comment {comment_id}")
