from typing import ContextManager, Protocol


class SlotLock(Protocol):
    def hold(self, key: str) -> ContextManager[None]:
        ...
