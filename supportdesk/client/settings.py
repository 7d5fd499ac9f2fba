"""Client-local settings for dashboard and chat front ends.

Lifecycle: ``ClientSettings.load(path)`` when the client starts, mutate the
object while the view is open, ``save(path)`` when it closes or a setting
changes. A missing or unreadable file yields defaults.
"""
from pathlib import Path
from typing import Dict, Union
import logging

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class ClientSettings(BaseModel):
    dark_mode: bool = False
    auto_refresh: bool = True
    refresh_interval_seconds: float = Field(default=30.0, gt=0)
    # Unsent message text per conversation id
    drafts: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ClientSettings":
        path = Path(path)
        if not path.exists():
            return cls()
        try:
            return cls.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable client settings at {path}: {str(e)}")
            return cls()

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")

    def set_draft(self, conversation_id: str, text: str) -> None:
        """Store a draft; an empty draft removes the entry."""
        if text:
            self.drafts[conversation_id] = text
        else:
            self.drafts.pop(conversation_id, None)
