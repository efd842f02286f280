"""
Box: minimal governed target holding one owner-settable value.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..chain import Chain, external, transaction
from ..logger import get_logger
from .ownable import Ownable

logger = get_logger(__name__)


@dataclass(frozen=True)
class ValueChanged:
    new_value: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "ValueChanged", "newValue": str(self.new_value)}


class Box(Ownable):

    def __init__(self, chain: Chain, deployer: str, initial_owner: Optional[str] = None):
        super().__init__(chain, deployer, initial_owner)
        self._value = 0

    @external("store(uint256)")
    @transaction
    def store(self, caller: str, new_value: int) -> None:
        """Owner-only mutator."""
        self.only_owner(caller)
        self._value = new_value
        self._emit(ValueChanged(new_value))
        logger.info(f"Box {self.address} stored {new_value}")

    @external("retrieve()")
    def retrieve(self, caller: Optional[str] = None) -> int:
        return self._value
