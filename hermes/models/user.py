import hashlib
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    """Account row; identity itself is owned by the auth provider."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    created_at: datetime
    display_name: Optional[str] = None
    status: str = "active"

    @staticmethod
    def fallback_display_name(user_id: str, display_name: Optional[str] = None) -> str:
        if display_name and display_name.strip():
            return display_name.strip()
        # Deterministic seeker handle
        digest = hashlib.sha1(user_id.encode("utf-8")).hexdigest()
        return f"seeker_{digest[-6:]}"
