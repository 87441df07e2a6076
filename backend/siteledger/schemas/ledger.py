from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import date, datetime


class MaterialCreate(BaseModel):
    material_name: str = Field(..., min_length=1, max_length=255)
    unit: str = Field(..., min_length=1, max_length=50)
    material_price: float = Field(..., ge=0)
    labor_price: float = Field(..., ge=0)


class MaterialUpdate(MaterialCreate):
    original_material_name: str = Field(..., min_length=1)


class MaterialResponse(BaseModel):
    id: int
    material_name: str
    unit: str
    material_price: float
    labor_price: float
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UsageItem(BaseModel):
    """One usage line; prices are taken from the catalog, never from the caller."""
    date: date
    material_name: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    unit: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class ReceivedItem(UsageItem):
    supplier: str = Field(..., min_length=1)


class UsageSubmission(BaseModel):
    materials: List[UsageItem] = Field(..., min_length=1)


class ReceivedSubmission(BaseModel):
    materials: List[ReceivedItem] = Field(..., min_length=1)


class DailyReportResponse(BaseModel):
    id: int
    username: str
    date: date
    material_name: str
    quantity: float
    unit: str
    material_price: float
    labour_price: float
    location: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReceivedResponse(BaseModel):
    id: int
    username: str
    date: date
    material_name: str
    quantity: float
    unit: str
    supplier: str
    location: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TotalPriceResponse(BaseModel):
    id: int
    username: str
    date: date
    material_name: str
    quantity: float
    unit: str
    material_price: float
    labor_price: float
    material_cost: float
    labor_cost: float
    total_price: float
    location: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ActivityLogResponse(BaseModel):
    id: int
    username: str
    role: Optional[str] = None
    action: str
    resource: str
    resource_id: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: Optional[datetime] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    class Config:
        from_attributes = True


class SiteStatistics(BaseModel):
    daily_reports: int = 0
    materials: int = 0
    received_items: int = 0
    total_prices: int = 0
