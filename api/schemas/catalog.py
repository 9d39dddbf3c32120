"""
Catalog Schemas
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict


class CatalogMedicineCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: float = Field(default=0.0, ge=0)
    symptoms: List[str] = []


class CatalogMedicineUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    symptoms: Optional[List[str]] = None


class CatalogMedicineResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    symptoms: List[str] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
