from pydantic import BaseModel, ConfigDict, Field


class ItemAssignment(BaseModel):
    """
    Assignment state for one item.

    participants: who the item touches (kept a superset of everyone with a positive count).
    unit_counts: units claimed per participant; zero counts are never stored.
    portions: per-unit claimants for shared items, empty tuple when no table was saved.
    """
    model_config = ConfigDict(frozen=True)

    participants: frozenset[str] = frozenset()
    is_shared: bool = False
    unit_counts: dict[str, int] = Field(default_factory=dict)
    portions: tuple[frozenset[str], ...] = ()

    def count_for(self, participant_id: str) -> int:
        return self.unit_counts.get(participant_id, 0)

    @property
    def claimed_units(self) -> int:
        return sum(self.unit_counts.values())

    @property
    def has_counts(self) -> bool:
        return any(count > 0 for count in self.unit_counts.values())

    @property
    def has_portions(self) -> bool:
        return any(self.portions)

    @property
    def linked(self) -> frozenset[str]:
        counted = {pid for pid, count in self.unit_counts.items() if count > 0}
        return self.participants | counted

    @property
    def is_empty(self) -> bool:
        return not self.linked and not self.is_shared and not self.portions


EMPTY_ASSIGNMENT = ItemAssignment()


class AssignmentStore(BaseModel):
    model_config = ConfigDict(frozen=True)

    entries: dict[int, ItemAssignment] = Field(default_factory=dict)

    def entry(self, index: int) -> ItemAssignment:
        # Entries are created lazily; an untouched item reads as unassigned.
        return self.entries.get(index, EMPTY_ASSIGNMENT)

    def with_entry(self, index: int, entry: ItemAssignment) -> "AssignmentStore":
        entries = dict(self.entries)
        entries[index] = entry
        return AssignmentStore(entries=entries)

    def without_entry(self, index: int) -> "AssignmentStore":
        entries = {i: e for i, e in self.entries.items() if i != index}
        return AssignmentStore(entries=entries)
