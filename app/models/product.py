from pydantic import BaseModel, Field
from typing import List
from datetime import datetime
from enum import Enum
from bson import ObjectId
from .user import PyObjectId


class ProductType(str, Enum):
    CLEANSER = "cleanser"
    TONER = "toner"
    SERUM = "serum"
    MOISTURIZER = "moisturizer"
    SUNSCREEN = "sunscreen"
    OTHER = "other"


class KeyIngredient(BaseModel):
    name: str


class ProductModel(BaseModel):
    model_config = {
        "arbitrary_types_allowed": True,
        "populate_by_name": True,
        "use_enum_values": True,
        "json_encoders": {ObjectId: str, datetime: lambda v: v.isoformat()}
    }

    id: PyObjectId = Field(default_factory=PyObjectId, alias="_id")
    user_id: PyObjectId
    name: str = Field(..., min_length=1)
    brand: str = ""
    type: ProductType = ProductType.OTHER
    key_ingredients: List[KeyIngredient] = []  # Ordered as listed on the label
    usage: str = ""
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
