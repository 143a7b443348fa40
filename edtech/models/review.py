# edtech/models/review.py
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Review(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    course_id: str
    user_id: str

    # Resolved from the author's profile at fetch time
    user_name: str
    user_avatar: Optional[str] = None

    rating: int = Field(..., ge=1, le=5)
    comment: str
    created_at: date
    helpful: int = Field(0, ge=0)
