from pydantic import Field, validator
from datetime import datetime
from typing import Optional, List

from app.core.schemas import CamelModel


# ============ Plan Schemas ============

class PlanBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    roi: float = Field(..., ge=0, le=1000, description="Rate of return in percent")
    min_amount: float = Field(..., ge=0)
    duration: str = Field(..., min_length=1, max_length=50, examples=["30 days"])
    features: List[str] = Field(..., min_length=1)

    @validator("name", "description", "duration")
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @validator("features")
    def drop_blank_features(cls, v):
        features = [f.strip() for f in v if f.strip()]
        if not features:
            raise ValueError("At least one feature is required")
        return features


class PlanCreate(PlanBase):
    pass


class PlanUpdate(PlanBase):
    """Plans are updated as a whole; every field is required"""
    pass


class PlanResponse(CamelModel):
    id: int
    name: str
    description: str
    roi: float
    min_amount: float
    duration: str
    features: List[str]
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
