# storefront/api/routers/products.py
from typing import List, Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.deps import get_storefront
from storefront.domain.schemas import Product
from storefront.services.storefront_session import StorefrontSession

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=List[Product])
def list_products(
    category: str = Query("all"),
    sort: Literal["name", "price-low", "price-high"] = Query("name"),
    sf: StorefrontSession = Depends(get_storefront),
):
    return sf.catalog.list_products(category=category, sort=sort)


@router.get("/featured", response_model=List[Product])
def featured(sf: StorefrontSession = Depends(get_storefront)):
    return sf.catalog.featured()


@router.get("/categories", response_model=List[str])
def categories(sf: StorefrontSession = Depends(get_storefront)):
    return sf.catalog.categories()


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: str, sf: StorefrontSession = Depends(get_storefront)):
    product = sf.catalog.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
