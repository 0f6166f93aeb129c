"""Pydantic models for request/response"""
from pydantic import BaseModel, Field
from typing import Optional


class TryOnRequest(BaseModel):
    person_image_url: str = Field(..., description="Public URL of the person image")
    garment_image_url: str = Field(..., description="Public URL of the garment image")


class TryOnErrorResponse(BaseModel):
    success: bool = False
    error: str
    processingTime: int


class ModelStatusResponse(BaseModel):
    available: bool
    status: Optional[str] = None
    error: Optional[str] = None
