from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date


class TotalsRow(BaseModel):
    material_name: str
    quantity: float = 0.0
    unit: Optional[str] = None
    material_cost: float = 0.0
    labor_cost: float = 0.0
    total_price: float = 0.0
    location: str = "N/A"


class TotalsSummary(BaseModel):
    total_materials: int = 0
    grand_total: float = 0.0
    total_material_cost: float = 0.0
    total_labor_cost: float = 0.0


class TotalsReport(BaseModel):
    rows: List[TotalsRow] = Field(default_factory=list)
    summary: TotalsSummary = Field(default_factory=TotalsSummary)


class TotalsResponse(TotalsReport):
    """Totals plus the request context they were computed for"""
    success: bool = True
    site: str
    company: str
    start_date: date
    end_date: date


class PriceItem(BaseModel):
    material_name: str = Field(..., min_length=1)
    quantity: float = Field(..., ge=0)


class PricedItem(BaseModel):
    material_name: str
    quantity: float
    unit: str
    material_price: float
    labor_price: float
    material_cost: float
    labor_cost: float
    total_price: float


class PriceCalculationRequest(BaseModel):
    materials: List[PriceItem] = Field(..., min_length=1)


class PriceCalculationResponse(BaseModel):
    items: List[PricedItem]
    grand_total: float
