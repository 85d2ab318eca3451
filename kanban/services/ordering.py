"""
Position management for cards and columns.

Everything here is pure: functions take the current rows (anything with
``id`` and ``position`` attributes) and return new position assignments.
Persisting the result is left to the services, which keeps the arithmetic
testable without a database.

Positions are 0-based. Cards are dense within their column, columns are dense
within their board.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from kanban.core.exceptions import ValidationFailed


DEFAULT_COLUMNS = ("To Do", "In Progress", "Testing", "Done")

COLUMNS_FIELD = "columns"


def next_position(positions: Iterable[Optional[int]]) -> int:
    """Position for an item appended to the end of a column.

    0 for an empty column, ``max + 1`` otherwise.
    """
    existing = [position for position in positions if position is not None]
    if not existing:
        return 0
    return max(existing) + 1


def clamp_position(target_position: int, size: int) -> int:
    """Clamp an insertion index into ``[0, size]``"""
    return max(0, min(target_position, size))


def _ordered(items: Iterable) -> List:
    # id как второй ключ: при дублях позиций порядок остается детерминированным
    return sorted(items, key=lambda item: (item.position, item.id))


def plan_card_move(siblings: Sequence, moved_id: int, target_position: int) -> Dict[int, int]:
    """Positions for a target column after inserting the moved card.

    ``siblings`` are the cards currently in the target column. The moved card
    is excluded from them even when it already lives there, then inserted at
    ``target_position`` (clamped to the valid range) and the whole sequence is
    numbered 0..n-1.

    Returns a mapping ``card_id -> new position`` covering every card of the
    target column, the moved one included.
    """
    others = [card.id for card in _ordered(card for card in siblings if card.id != moved_id)]
    index = clamp_position(target_position, len(others))
    others.insert(index, moved_id)
    return {card_id: position for position, card_id in enumerate(others)}


def plan_compaction(items: Sequence) -> Dict[int, int]:
    """Dense 0..n-1 positions preserving the current order"""
    return {item.id: position for position, item in enumerate(_ordered(items))}


def changed_positions(items: Sequence, assignments: Dict[int, int]) -> Dict[int, int]:
    """Subset of ``assignments`` that differs from the rows' current positions.

    Ids present in ``assignments`` but absent from ``items`` are always kept,
    their current position is unknown.
    """
    current = {item.id: item.position for item in items}
    return {
        item_id: position
        for item_id, position in assignments.items()
        if current.get(item_id) != position
    }


def is_dense(positions: Iterable[int]) -> bool:
    """True when positions are exactly 0..n-1"""
    ordered = sorted(positions)
    return ordered == list(range(len(ordered)))


@dataclass
class ColumnSpec:
    """One requested column in a reconciliation call"""
    name: str
    position: int
    id: Optional[int] = None
    color: Optional[str] = None


@dataclass
class ExistingColumn:
    """Current state of a board column, as needed for reconciliation"""
    id: int
    name: str
    position: int
    card_count: int = 0


@dataclass
class ReconciliationPlan:
    """Writes needed to turn the current column set into the requested one"""
    to_create: List[ColumnSpec] = field(default_factory=list)
    to_update: List[ColumnSpec] = field(default_factory=list)
    to_delete: List[int] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not (self.to_create or self.to_update or self.to_delete)


def normalize_column_name(name: str) -> str:
    return name.strip().lower()


def _dense_requested(requested: Sequence[ColumnSpec]) -> List[ColumnSpec]:
    # Порядок задается позицией, при равных позициях - порядком в запросе
    indexed = sorted(enumerate(requested), key=lambda pair: (pair[1].position, pair[0]))
    return [
        ColumnSpec(name=spec.name.strip(), position=position, id=spec.id, color=spec.color)
        for position, (_, spec) in enumerate(indexed)
    ]


def plan_column_reconciliation(
    existing: Sequence[ExistingColumn],
    requested: Sequence[ColumnSpec],
) -> ReconciliationPlan:
    """Validate a requested column set against the board and plan the writes.

    Columns whose id is absent from the request are deleted; a request that
    carries no ids at all replaces every current column. Entries without id
    are created, entries with id are updated in place. Requested positions
    are re-numbered densely, keeping the requested order.

    Raises ValidationFailed, with every violation collected under
    ``columns``, when:
      - the resulting set is empty,
      - a name is blank or names collide (case-insensitive, trimmed),
      - an id is repeated or does not belong to the board,
      - a column to be deleted still holds cards.

    Nothing is written here, so a rejected plan leaves the board untouched.
    """
    errors: List[str] = []

    if not requested:
        errors.append("At least one column is required.")

    if any(not spec.name or not spec.name.strip() for spec in requested):
        errors.append("Column name is required.")

    names = [normalize_column_name(spec.name) for spec in requested if spec.name and spec.name.strip()]
    if len(names) != len(set(names)):
        errors.append("Column names must be unique.")

    existing_by_id = {column.id: column for column in existing}
    requested_ids = [spec.id for spec in requested if spec.id is not None]

    if len(requested_ids) != len(set(requested_ids)):
        errors.append("Each column may appear only once.")

    if any(column_id not in existing_by_id for column_id in requested_ids):
        errors.append("One or more columns do not belong to this board.")

    kept_ids = set(requested_ids)
    deleted = [column for column in existing if column.id not in kept_ids]
    for column in deleted:
        if column.card_count > 0:
            errors.append(
                f"Cannot delete column '{column.name}' because it contains "
                f"{column.card_count} card(s). Please move or delete the cards first."
            )

    if errors:
        raise ValidationFailed({COLUMNS_FIELD: errors}, message=errors[0])

    plan = ReconciliationPlan(to_delete=[column.id for column in deleted])
    for spec in _dense_requested(requested):
        if spec.id is None:
            plan.to_create.append(spec)
        else:
            current = existing_by_id[spec.id]
            if current.name != spec.name or current.position != spec.position or spec.color is not None:
                plan.to_update.append(spec)
    return plan


def plan_column_reorder(existing_ids: Iterable[int], requested: Sequence[Dict[str, int]]) -> Dict[int, int]:
    """Validate a bare ``[{id, position}]`` reorder request.

    Only rewrites positions. The request must list every column of the board
    exactly once; requested positions give the order and are renumbered
    0..n-1, ties keep the request order.
    """
    known = set(existing_ids)
    ids = [item["id"] for item in requested]
    if not ids:
        raise ValidationFailed.single(COLUMNS_FIELD, "Column data is required.")
    if any(column_id not in known for column_id in ids) or len(ids) != len(set(ids)):
        raise ValidationFailed.single(COLUMNS_FIELD, "One or more columns are invalid.")
    if set(ids) != known:
        raise ValidationFailed.single(COLUMNS_FIELD, "Every column of the board must be listed.")

    indexed = sorted(enumerate(requested), key=lambda pair: (pair[1]["position"], pair[0]))
    return {item["id"]: position for position, (_, item) in enumerate(indexed)}
