# microstore/api/routers/products.py
from decimal import Decimal
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from microstore.api.deps import require_admin
from microstore.data.database import get_db
from microstore.domain.errors import ValidationError
from microstore.domain.schemas import ProductCreate, ProductFilter, ProductOut, ProductUpdate
from microstore.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=list[ProductOut])
def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[Decimal] = Query(None, alias="minPrice"),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice"),
    in_stock: Optional[bool] = Query(None, alias="inStock"),
    sort_by: Optional[Literal["price", "name", "category"]] = Query(None, alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    db: Session = Depends(get_db),
):
    filters = ProductFilter(
        search=search,
        category=category,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ProductService(db).list_products(filters)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = ProductService(db).get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db), _admin=Depends(require_admin)):
    try:
        return ProductService(db).create_product(payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    try:
        product = ProductService(db).update_product(product_id, payload)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: int, db: Session = Depends(get_db), _admin=Depends(require_admin)):
    try:
        deleted = ProductService(db).delete_product(product_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Product not found")
    return Response(status_code=204)
