"""
Bulk-action selection over dashboard records.
"""
from dataclasses import dataclass, field
from typing import List, Sequence, Set

from .models import AttestationRecord


@dataclass
class Partition:
    registered_ids: List[str] = field(default_factory=list)
    unregistered_invite_ids: List[str] = field(default_factory=list)


class Selection:
    """Set of selected record keys owned by a single dashboard."""

    def __init__(self):
        self._keys: Set[str] = set()

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: str) -> bool:
        return key in self._keys

    @property
    def keys(self) -> Set[str]:
        return set(self._keys)

    @staticmethod
    def is_selectable(record: AttestationRecord) -> bool:
        return not record.is_completed

    def toggle(self, record: AttestationRecord) -> bool:
        """
        Flip membership of a record. Completed records are ignored.

        Returns:
            True if the record is selected afterwards
        """
        if not self.is_selectable(record):
            return False

        if record.key in self._keys:
            self._keys.discard(record.key)
            return False

        self._keys.add(record.key)
        return True

    def all_visible_selected(self, visible: Sequence[AttestationRecord]) -> bool:
        eligible = [r.key for r in visible if self.is_selectable(r)]
        return bool(eligible) and all(key in self._keys for key in eligible)

    def select_all_visible(self, visible: Sequence[AttestationRecord]) -> None:
        """Select every eligible visible record, or deselect them if all already are."""
        eligible = {r.key for r in visible if self.is_selectable(r)}
        if not eligible:
            return

        if eligible <= self._keys:
            self._keys -= eligible
        else:
            self._keys |= eligible

    def clear(self) -> None:
        self._keys.clear()

    def partition(self, visible: Sequence[AttestationRecord]) -> Partition:
        """
        Split the selection into reminder ids and invite ids.

        Selected keys whose record is not in the visible list are dropped.
        """
        result = Partition()
        for record in visible:
            if record.key not in self._keys:
                continue
            if record.is_pending_invite:
                result.unregistered_invite_ids.append(record.invite_id)
            else:
                result.registered_ids.append(record.id)
        return result
