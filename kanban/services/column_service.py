from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, exists
from datetime import datetime

from kanban.core.exceptions import ValidationFailed
from kanban.models.column import BoardColumn
from kanban.models.card import Card
from kanban.services.ordering import (
    COLUMNS_FIELD,
    DEFAULT_COLUMNS,
    ExistingColumn,
    ReconciliationPlan,
)
from kanban.logs import debug_logger


class ColumnService:
    """Persistence of board columns.

    Methods that write do not commit: they run inside the transaction of the
    board operation that calls them.
    """

    @staticmethod
    async def get_by_id(
        db: AsyncSession,
        column_id: int
    ) -> Optional[BoardColumn]:
        query = select(BoardColumn).where(BoardColumn.id == column_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_board_id(
        db: AsyncSession,
        board_id: int
    ) -> List[BoardColumn]:
        """Columns of a board ordered by position"""
        query = select(BoardColumn).where(
            BoardColumn.board_id == board_id
        ).order_by(BoardColumn.position, BoardColumn.id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_with_card_counts(
        db: AsyncSession,
        board_id: int
    ) -> List[ExistingColumn]:
        """Current columns of a board with the number of cards in each"""
        query = (
            select(
                BoardColumn.id,
                BoardColumn.name,
                BoardColumn.position,
                func.count(Card.id).label("card_count"),
            )
            .outerjoin(Card, Card.column_id == BoardColumn.id)
            .where(BoardColumn.board_id == board_id)
            .group_by(BoardColumn.id, BoardColumn.name, BoardColumn.position)
            .order_by(BoardColumn.position, BoardColumn.id)
        )
        result = await db.execute(query)
        return [
            ExistingColumn(id=row.id, name=row.name, position=row.position, card_count=row.card_count)
            for row in result.all()
        ]

    @staticmethod
    def build_default_columns(board_id: int) -> List[BoardColumn]:
        return [
            BoardColumn(name=name, position=position, board_id=board_id)
            for position, name in enumerate(DEFAULT_COLUMNS)
        ]

    @staticmethod
    async def apply_reconciliation(
        db: AsyncSession,
        board_id: int,
        plan: ReconciliationPlan
    ) -> None:
        """Execute a validated reconciliation plan.

        Deletes go first and are guarded again in SQL: a column that got a
        card after validation is not deleted, and the call fails so the
        surrounding transaction is rolled back.
        """
        current_time = datetime.utcnow().replace(tzinfo=None)

        if plan.to_delete:
            debug_logger.debug(f"Удаление колонок {plan.to_delete} доски {board_id}")
            stmt = delete(BoardColumn).where(
                BoardColumn.board_id == board_id,
                BoardColumn.id.in_(plan.to_delete),
                ~exists().where(Card.column_id == BoardColumn.id),
            )
            result = await db.execute(stmt)
            if result.rowcount != len(plan.to_delete):
                raise ValidationFailed.single(
                    COLUMNS_FIELD,
                    "Cannot delete a column that contains cards. Please move or delete the cards first."
                )

        for spec in plan.to_update:
            values = {"name": spec.name, "position": spec.position, "updated_at": current_time}
            if spec.color is not None:
                values["color"] = spec.color
            stmt = update(BoardColumn).where(
                BoardColumn.id == spec.id,
                BoardColumn.board_id == board_id
            ).values(**values)
            await db.execute(stmt)

        for spec in plan.to_create:
            db.add(BoardColumn(
                name=spec.name,
                color=spec.color,
                position=spec.position,
                board_id=board_id
            ))

        await db.flush()

    @staticmethod
    async def apply_positions(
        db: AsyncSession,
        board_id: int,
        positions: Dict[int, int]
    ) -> None:
        """Rewrite column positions, scoped to the board"""
        current_time = datetime.utcnow().replace(tzinfo=None)
        for column_id, position in positions.items():
            stmt = update(BoardColumn).where(
                BoardColumn.id == column_id,
                BoardColumn.board_id == board_id
            ).values(position=position, updated_at=current_time)
            await db.execute(stmt)
