"""Markdown message payload for the DingTalk robot API."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Tuple

MSGTYPE = "markdown"


@dataclass(frozen=True)
class AlertMessage:
    """A markdown robot message built in one step from a title and text fragments."""

    title: str
    fragments: Tuple[str, ...] = ()

    @classmethod
    def build(cls, title: str, *fragments: str) -> "AlertMessage":
        return cls(title=title, fragments=tuple(fragments))

    @property
    def text(self) -> str:
        return "".join(self.fragments)

    def to_payload(self) -> Dict[str, Any]:
        return {"msgtype": MSGTYPE, "markdown": {"title": self.title, "text": self.text}}

    def serialize(self) -> str:
        """Return the compact JSON body, with title and text properly escaped."""
        return json.dumps(self.to_payload(), ensure_ascii=False, separators=(",", ":"))
