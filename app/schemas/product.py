from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.models.product import ProductType, KeyIngredient

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    brand: str = ""
    type: ProductType = ProductType.OTHER
    key_ingredients: List[KeyIngredient] = []
    usage: str = ""
    is_active: bool = True

class ProductUpdate(BaseModel):
    """Partial update - only fields the client sends are applied"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    brand: Optional[str] = None
    type: Optional[ProductType] = None
    key_ingredients: Optional[List[KeyIngredient]] = None
    usage: Optional[str] = None
    is_active: Optional[bool] = None

class ProductResponse(BaseModel):
    id: str
    name: str
    brand: str
    type: str
    key_ingredients: List[KeyIngredient]
    usage: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, doc: dict) -> "ProductResponse":
        return cls(
            id=str(doc["_id"]),
            name=doc["name"],
            brand=doc.get("brand", ""),
            type=doc.get("type", ProductType.OTHER.value),
            key_ingredients=doc.get("key_ingredients", []),
            usage=doc.get("usage", ""),
            is_active=doc.get("is_active", True),
            created_at=doc["created_at"],
            updated_at=doc.get("updated_at", doc["created_at"]),
        )

class ProductMutationResponse(BaseModel):
    product: ProductResponse
    auto_regenerate: bool

class ProductDeleteResponse(BaseModel):
    message: str
    routines_affected: int
    auto_regenerate: bool
