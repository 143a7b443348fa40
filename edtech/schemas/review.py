# edtech/schemas/review.py
from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    course_id: str
    user_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)
