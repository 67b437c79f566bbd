"""
hermes/models/usage_event.py

A tool invocation as reconstructed from the message history.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict


class UsageEvent(BaseModel):
    """
    UsageEvent is a message tagged with metadata.toolUsage.

    Tool types:
    - ai_tool: one of the generator/reader tools
    - voice_generation: text-to-speech output
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    conversation_id: str
    tool_name: str
    tool_type: str
    occurred_at: datetime
    metadata: Optional[Dict[str, Any]] = None
