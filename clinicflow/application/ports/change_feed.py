from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"


@dataclass
class ChangeEvent:
    table: str
    event: str
    row: Dict[str, Any] = field(default_factory=dict)


ChangeCallback = Callable[[ChangeEvent], None]


class ChangeFeed(Protocol):
    def subscribe(self, table: str, callback: ChangeCallback, filters: Optional[Dict[str, Any]] = None) -> Callable[[], None]:
        ...

    def publish(self, event: ChangeEvent) -> None:
        ...
