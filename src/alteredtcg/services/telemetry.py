from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from alteredtcg.engine.events import Event, EventBus
from alteredtcg.engine.serialize import event_to_dict


@dataclass
class TelemetryService:
    """Append-only JSONL log of match events, one record per line."""

    path: Path

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def record(self, event: Event) -> None:
        payload = event_to_dict(event)
        payload.pop("type", None)
        self.log(event.type, payload)

    def attach(self, bus: EventBus) -> None:
        bus.subscribe_all(self.record)
