from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from sqlalchemy.orm import selectinload
from datetime import datetime

from kanban.core.exceptions import ValidationFailed
from kanban.models.board import Board
from kanban.models.card import Card, Comment
from kanban.services.access_service import has_board_access
from kanban.services.column_service import ColumnService
from kanban.services.ordering import (
    changed_positions,
    next_position,
    plan_card_move,
    plan_compaction,
)
from kanban.services.event_service import (
    notify_card_created,
    notify_card_updated,
    notify_card_moved,
    notify_card_deleted,
)
from kanban.logs import debug_logger, log_function, api_logger


UPDATABLE_FIELDS = ("title", "description", "assigned_user_id")


def _card_event_data(card: Card) -> dict:
    return {
        "id": card.id,
        "title": card.title,
        "column_id": card.column_id,
        "position": card.position,
        "assigned_user_id": card.assigned_user_id,
    }


class CardService:
    """Card aggregate: creation, edits, moves between columns and deletion"""

    @staticmethod
    async def _ensure_column_on_board(db: AsyncSession, board_id: int, column_id: int) -> None:
        column = await ColumnService.get_by_id(db, column_id)
        if column is None or column.board_id != board_id:
            raise ValidationFailed.single("column_id", "The selected column is invalid.")

    @staticmethod
    def _ensure_assignee_has_access(board: Board, assigned_user_id: Optional[int]) -> None:
        if assigned_user_id is not None and not has_board_access(assigned_user_id, board):
            raise ValidationFailed.single(
                "assigned_user_id",
                "The selected user does not have access to this board."
            )

    @staticmethod
    async def get_column_cards(
        db: AsyncSession,
        column_id: int,
        lock: bool = False
    ) -> List[Card]:
        """Cards of a column ordered by position; ``lock`` takes row locks until commit"""
        query = select(Card).where(Card.column_id == column_id).order_by(Card.position, Card.id)
        if lock:
            query = query.with_for_update()
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def _write_positions(db: AsyncSession, positions: Dict[int, int], current_time: datetime) -> None:
        for card_id, position in positions.items():
            stmt = update(Card).where(Card.id == card_id).values(position=position, updated_at=current_time)
            await db.execute(stmt)

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        board: Board,
        column_id: int,
        title: str,
        description: Optional[str] = None,
        assigned_user_id: Optional[int] = None,
        creator_id: Optional[int] = None
    ) -> Card:
        """Append a new card to the end of a column"""
        await CardService._ensure_column_on_board(db, board.id, column_id)
        CardService._ensure_assignee_has_access(board, assigned_user_id)

        try:
            siblings = await CardService.get_column_cards(db, column_id, lock=True)
            card = Card(
                title=title,
                description=description,
                board_id=board.id,
                column_id=column_id,
                assigned_user_id=assigned_user_id,
                creator_id=creator_id,
                position=next_position(sibling.position for sibling in siblings)
            )
            db.add(card)
            await db.commit()
        except Exception:
            await db.rollback()
            debug_logger.error(f"Ошибка при создании карточки в колонке {column_id}")
            raise

        debug_logger.info(f"Создана новая карточка: ID {card.id}, в колонке {column_id}, позиция {card.position}")
        await notify_card_created(board.id, _card_event_data(card))
        return await CardService.get_by_id(db, card.id, load_relations=True)

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        card_id: int,
        load_relations: bool = False
    ) -> Optional[Card]:
        """Card by id with its board (and the board's shares) always loaded"""
        query = select(Card).where(Card.id == card_id).options(
            selectinload(Card.board).selectinload(Board.shares)
        )

        if load_relations:
            query = query.options(
                selectinload(Card.assigned_user),
                selectinload(Card.comments).selectinload(Comment.user),
            ).execution_options(populate_existing=True)

        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        card: Card,
        title: str,
        description: Optional[str] = None,
        assigned_user_id: Optional[int] = None
    ) -> Card:
        """Update title, description and assignee. Never touches column or position"""
        CardService._ensure_assignee_has_access(card.board, assigned_user_id)

        new_values = {
            "title": title,
            "description": description,
            "assigned_user_id": assigned_user_id,
        }
        updated_fields = [
            field for field in UPDATABLE_FIELDS
            if getattr(card, field) != new_values[field]
        ]

        if updated_fields:
            debug_logger.debug(f"Обновляемые поля карточки {card.id}: {updated_fields}")
            stmt = update(Card).where(Card.id == card.id).values(
                **new_values,
                updated_at=datetime.utcnow().replace(tzinfo=None)
            )
            try:
                await db.execute(stmt)
                await db.commit()
            except Exception:
                await db.rollback()
                debug_logger.error(f"Ошибка при обновлении карточки {card.id}")
                raise

            await notify_card_updated(card.id, card.board_id, updated_fields)

        return await CardService.get_by_id(db, card.id, load_relations=True)

    @staticmethod
    @log_function()
    async def move_card(
        db: AsyncSession,
        card: Card,
        new_column_id: int,
        new_position: int
    ) -> Card:
        """Move a card to ``new_position`` of ``new_column_id``.

        The target column is renumbered 0..n-1 around the inserted card. On a
        cross-column move the source column is compacted in the same
        transaction. Cards of both columns are locked until commit, so
        concurrent moves into the same column are serialized.
        """
        await CardService._ensure_column_on_board(db, card.board_id, new_column_id)

        old_column_id = card.column_id
        card_id = card.id
        current_time = datetime.utcnow().replace(tzinfo=None)

        try:
            # Блокируем колонки по возрастанию id, чтобы встречные перемещения не вели к deadlock
            locked = {}
            for column_id in sorted({old_column_id, new_column_id}):
                locked[column_id] = await CardService.get_column_cards(db, column_id, lock=True)

            target_cards = locked[new_column_id]
            assignments = plan_card_move(target_cards, card_id, new_position)

            # Сначала меняем колонку, затем позиции
            if old_column_id != new_column_id:
                stmt = update(Card).where(Card.id == card_id).values(
                    column_id=new_column_id,
                    updated_at=current_time
                )
                await db.execute(stmt)

            await CardService._write_positions(
                db, changed_positions(target_cards, assignments), current_time
            )

            if old_column_id != new_column_id:
                # Сжимаем позиции в старой колонке
                source_cards = [source for source in locked[old_column_id] if source.id != card_id]
                await CardService._write_positions(
                    db, changed_positions(source_cards, plan_compaction(source_cards)), current_time
                )

            await db.commit()
        except Exception as e:
            await db.rollback()
            debug_logger.error(f"Ошибка при перемещении карточки {card_id}")
            api_logger.error(f"Failed to move card {card_id} to column {new_column_id}: {str(e)}")
            raise

        final_position = assignments[card_id]
        debug_logger.info(
            f"Карточка {card_id} перемещена из колонки {old_column_id} "
            f"в колонку {new_column_id} на позицию {final_position}"
        )
        await notify_card_moved(card_id, card.board_id, old_column_id, new_column_id, final_position)
        return await CardService.get_by_id(db, card_id, load_relations=True)

    @staticmethod
    @log_function()
    async def compact_column(
        db: AsyncSession,
        column_id: int
    ) -> int:
        """Close position gaps in a column. Returns how many cards were renumbered"""
        try:
            cards = await CardService.get_column_cards(db, column_id, lock=True)
            changes = changed_positions(cards, plan_compaction(cards))
            if changes:
                await CardService._write_positions(db, changes, datetime.utcnow().replace(tzinfo=None))
            await db.commit()
        except Exception:
            await db.rollback()
            debug_logger.error(f"Ошибка при сжатии позиций в колонке {column_id}")
            raise
        return len(changes)

    @staticmethod
    @log_function()
    async def delete(
        db: AsyncSession,
        card: Card
    ) -> bool:
        """Delete a card. Siblings keep their positions, a gap is left behind"""
        card_id, board_id = card.id, card.board_id
        stmt = delete(Card).where(Card.id == card_id)
        result = await db.execute(stmt)
        await db.commit()

        deleted = result.rowcount > 0
        if deleted:
            debug_logger.info(f"Карточка {card_id} успешно удалена")
            await notify_card_deleted(board_id, card_id)
        else:
            debug_logger.warning(f"Не удалось удалить карточку {card_id}")
        return deleted
