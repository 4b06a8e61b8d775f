from .user import UserModel, SkinProfile, PyObjectId
from .product import ProductModel, ProductType, KeyIngredient
from .routine import RoutineModel, RoutineStep, RoutineType, renumber_steps

__all__ = [
    "UserModel", "SkinProfile", "PyObjectId",
    "ProductModel", "ProductType", "KeyIngredient",
    "RoutineModel", "RoutineStep", "RoutineType", "renumber_steps"
]
