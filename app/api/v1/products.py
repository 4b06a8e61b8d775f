from fastapi import APIRouter, Depends, status
from pymongo import DESCENDING
from pymongo.database import Database
from typing import List
from datetime import datetime
import logging

from app.api.deps import get_db, get_current_active_user, get_catalog_reconciler
from app.core.exceptions import IntegrityRepairError, bad_request, not_found, forbidden, internal_error
from app.database import as_object_id
from app.models.user import UserModel
from app.models.product import ProductModel
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductMutationResponse,
    ProductDeleteResponse,
)
from app.services.catalog_reconciler import (
    CatalogReconciler,
    CatalogChange,
    changed_product_fields,
    decide_regeneration_trigger,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_owned_product(db: Database, product_id: str, user: UserModel, action: str) -> dict:
    try:
        product_oid = as_object_id(product_id)
    except ValueError:
        raise bad_request("Invalid product ID")

    product = db.products.find_one({"_id": product_oid})
    if not product:
        raise not_found("Product not found")

    if product["user_id"] != user.id:
        raise forbidden(f"Not authorized to {action} this product")

    return product


@router.get("", response_model=List[ProductResponse])
def get_products(
    current_user: UserModel = Depends(get_current_active_user),
    db: Database = Depends(get_db),
):
    """Get all products for user, newest first"""
    products = db.products.find({"user_id": current_user.id}).sort("created_at", DESCENDING)
    return [ProductResponse.from_document(product) for product in products]


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: str,
    current_user: UserModel = Depends(get_current_active_user),
    db: Database = Depends(get_db),
):
    product = _get_owned_product(db, product_id, current_user, "access")
    return ProductResponse.from_document(product)


@router.post("", response_model=ProductMutationResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    current_user: UserModel = Depends(get_current_active_user),
    db: Database = Depends(get_db),
    reconciler: CatalogReconciler = Depends(get_catalog_reconciler),
):
    """Create a product and regenerate routines in the background"""
    product = ProductModel(user_id=current_user.id, **payload.model_dump())
    doc = product.model_dump(by_alias=True)
    db.products.insert_one(doc)

    reconciler.product_created(current_user.id)

    return ProductMutationResponse(
        product=ProductResponse.from_document(doc),
        auto_regenerate=True,
    )


@router.put("/{product_id}", response_model=ProductMutationResponse)
def update_product(
    product_id: str,
    payload: ProductUpdate,
    current_user: UserModel = Depends(get_current_active_user),
    db: Database = Depends(get_db),
    reconciler: CatalogReconciler = Depends(get_catalog_reconciler),
):
    """Update a product; routines regenerate only when type, usage or active status change"""
    product = _get_owned_product(db, product_id, current_user, "update")

    updates = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True, mode="json").items()
        if value is not None
    }
    changed = changed_product_fields(product, updates)

    if updates:
        updates["updated_at"] = datetime.utcnow()
        db.products.update_one({"_id": product["_id"]}, {"$set": updates})
        product = db.products.find_one({"_id": product["_id"]})

    significant = decide_regeneration_trigger(CatalogChange.UPDATED, changed)
    if significant:
        reconciler.product_updated(current_user.id, changed)

    return ProductMutationResponse(
        product=ProductResponse.from_document(product),
        auto_regenerate=significant,
    )


@router.delete("/{product_id}", response_model=ProductDeleteResponse)
def delete_product(
    product_id: str,
    current_user: UserModel = Depends(get_current_active_user),
    db: Database = Depends(get_db),
    reconciler: CatalogReconciler = Depends(get_catalog_reconciler),
):
    """Delete a product after removing it from every routine that uses it"""
    product = _get_owned_product(db, product_id, current_user, "delete")

    try:
        repair = reconciler.delete_product(current_user.id, product["_id"])
    except IntegrityRepairError as e:
        logger.error(f"Product {product_id} not deleted: {e}")
        raise internal_error("Could not update routines using this product; product was not deleted")

    return ProductDeleteResponse(
        message="Product deleted successfully",
        routines_affected=repair.routines_affected,
        auto_regenerate=True,
    )
