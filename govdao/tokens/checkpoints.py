"""
Checkpoint History

Append-only ``(block, value)`` sequences with binary-search lookups,
used for per-account voting power, total supply and the governor's
quorum numerator.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Checkpoint:
    """Value of a tracked quantity from ``key`` (a block number) onwards."""
    key: int
    value: int

    def to_dict(self):
        return {"fromBlock": self.key, "value": self.value}


@dataclass
class Trace:
    """
    Ordered checkpoint sequence, monotonic in ``key``.

    Pushing at the same key as the last checkpoint overwrites it, so a
    block never holds more than one value.
    """
    _checkpoints: List[Checkpoint] = field(default_factory=list)

    def push(self, key: int, value: int) -> int:
        """
        Record *value* at *key*.

        Returns:
            The previous latest value.

        Raises:
            ValueError: if *key* precedes the latest checkpoint.
        """
        if value < 0:
            raise ValueError(f"Checkpoint value cannot be negative: {value}")
        if self._checkpoints:
            last = self._checkpoints[-1]
            if key < last.key:
                raise ValueError(f"Unordered checkpoint: {key} < {last.key}")
            if key == last.key:
                self._checkpoints[-1] = Checkpoint(key, value)
            else:
                self._checkpoints.append(Checkpoint(key, value))
            return last.value
        self._checkpoints.append(Checkpoint(key, value))
        return 0

    def latest(self) -> int:
        return self._checkpoints[-1].value if self._checkpoints else 0

    def latest_checkpoint(self) -> Optional[Checkpoint]:
        return self._checkpoints[-1] if self._checkpoints else None

    def upper_lookup(self, key: int) -> int:
        """Value of the last checkpoint with ``checkpoint.key <= key`` (0 if none)."""
        low, high = 0, len(self._checkpoints)
        while low < high:
            mid = (low + high) // 2
            if self._checkpoints[mid].key > key:
                high = mid
            else:
                low = mid + 1
        return self._checkpoints[high - 1].value if high else 0

    def at(self, pos: int) -> Checkpoint:
        return self._checkpoints[pos]

    def __len__(self) -> int:
        return len(self._checkpoints)
