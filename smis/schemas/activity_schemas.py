# smis/schemas/activity_schemas.py
from typing import Any, Dict, Optional
from pydantic import BaseModel


class ActivityCreate(BaseModel):
    # Optional so that missing values are answered with 400
    action: Optional[str] = None
    description: Optional[str] = None
    user_id: Optional[int] = None
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None
