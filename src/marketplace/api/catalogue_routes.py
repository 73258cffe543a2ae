"""FastAPI routes for the product catalogue and the region list."""

import json

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from marketplace.api.auth import actor_region, current_actor, require_roles
from marketplace.api.schemas import (
    AreaProductListResponse,
    BulkModerationRequest,
    BulkModerationResponse,
    CreateProductRequest,
    CropTypesResponse,
    DistrictListResponse,
    OperationalArea,
    ProductEnvelope,
    ProductListResponse,
    ProductResponse,
    ProductStatistics,
    ProductStatisticsResponse,
    RegionListResponse,
    RegionResponse,
    RejectProductRequest,
    StatusResponse,
)
from marketplace.auth.tokens import Actor
from marketplace.product.listing import DeleteProduct, ListProduct
from marketplace.product.moderation import ApproveProduct, BulkModerateProducts, RejectProduct
from marketplace.product.product import Product
from marketplace.region.regions import districts_of, load_regions
from marketplace.user.user import Role, User

# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


def _product_envelope(product_id) -> ProductEnvelope:
    product = current_domain.repository_for(Product).get(product_id)
    return ProductEnvelope(product=ProductResponse.from_product(product))


def _page(products, page, limit) -> ProductListResponse:
    start = (page - 1) * limit
    return ProductListResponse(
        products=[ProductResponse.from_product(p) for p in products[start : start + limit]],
        total=len(products),
        page=page,
        limit=limit,
    )


@product_router.get("", response_model=ProductListResponse)
async def list_products(
    crop_type: str | None = None,
    region: str | None = None,
    search: str | None = None,
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
) -> ProductListResponse:
    products = current_domain.repository_for(Product).find_approved(
        crop_type=crop_type,
        region=region,
        search=search,
        min_price=min_price,
        max_price=max_price,
    )
    return _page(products, page, limit)


@product_router.get("/crop-types", response_model=CropTypesResponse)
async def crop_types() -> CropTypesResponse:
    return CropTypesResponse(crop_types=current_domain.repository_for(Product).crop_types())


@product_router.get("/pending", response_model=ProductListResponse)
async def pending_products(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    actor: Actor = Depends(require_roles(Role.AGENT, Role.ADMIN)),
) -> ProductListResponse:
    # Agents see their own region's queue; admins see every region
    products = current_domain.repository_for(Product).find_pending(region=actor_region(actor))
    return _page(products, page, limit)


@product_router.get("/area", response_model=AreaProductListResponse)
async def operational_area_products(
    status: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(require_roles(Role.AGENT)),
) -> AreaProductListResponse:
    agent = current_domain.repository_for(User).get(actor.id)
    products = current_domain.repository_for(Product).find_in_region(agent.region, status=status)
    return AreaProductListResponse(
        **_page(products, page, limit).model_dump(),
        operational_area=OperationalArea(region=agent.region, district=agent.district),
    )


@product_router.get("/all", response_model=ProductListResponse)
async def all_products(
    status: str | None = None,
    crop_type: str | None = None,
    region: str | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    actor: Actor = Depends(require_roles(Role.ADMIN)),  # noqa: ARG001
) -> ProductListResponse:
    products = current_domain.repository_for(Product).find_any(
        status=status,
        crop_type=crop_type,
        region=region,
        search=search,
    )
    return _page(products, page, limit)


@product_router.get("/statistics", response_model=ProductStatisticsResponse)
async def product_statistics(
    actor: Actor = Depends(require_roles(Role.AGENT, Role.ADMIN)),
) -> ProductStatisticsResponse:
    repo = current_domain.repository_for(Product)
    if actor.role == Role.ADMIN.value:
        statistics = repo.statistics()
    else:
        statistics = repo.agent_statistics(actor.id, actor_region(actor))
    return ProductStatisticsResponse(statistics=ProductStatistics(**statistics))


@product_router.get("/mine", response_model=ProductListResponse)
async def my_products(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    actor: Actor = Depends(require_roles(Role.SELLER, Role.ADMIN)),
) -> ProductListResponse:
    products = current_domain.repository_for(Product).find_by_seller(actor.id)
    return _page(products, page, limit)


@product_router.get("/seller/{seller_id}", response_model=ProductListResponse)
async def seller_products(
    seller_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
) -> ProductListResponse:
    products = [p for p in current_domain.repository_for(Product).find_by_seller(seller_id) if p.is_available]
    return _page(products, page, limit)


@product_router.get("/{product_id}", response_model=ProductEnvelope)
async def get_product(product_id: str) -> ProductEnvelope:
    return _product_envelope(product_id)


@product_router.post("", status_code=201, response_model=ProductEnvelope)
async def create_product(
    body: CreateProductRequest,
    actor: Actor = Depends(require_roles(Role.SELLER, Role.ADMIN)),
) -> ProductEnvelope:
    command = ListProduct(
        seller_id=actor.id,
        title=body.title,
        description=body.description,
        crop_type=body.crop_type,
        price_per_unit=body.price_per_unit,
        unit=body.unit,
        minimum_order_quantity=body.minimum_order_quantity,
        available_stock=body.available_stock,
        quality=body.quality,
        harvest_date=body.harvest_date.isoformat() if body.harvest_date else None,
        region=body.region,
        district=body.district,
    )
    product_id = current_domain.process(command, asynchronous=False)
    return _product_envelope(product_id)


@product_router.patch("/{product_id}/approve", response_model=ProductEnvelope)
async def approve_product(
    product_id: str,
    actor: Actor = Depends(require_roles(Role.AGENT, Role.ADMIN)),
) -> ProductEnvelope:
    command = ApproveProduct(product_id=product_id, reviewer_id=actor.id, reviewer_role=actor.role)
    current_domain.process(command, asynchronous=False)
    return _product_envelope(product_id)


@product_router.patch("/{product_id}/reject", response_model=ProductEnvelope)
async def reject_product(
    product_id: str,
    body: RejectProductRequest,
    actor: Actor = Depends(require_roles(Role.AGENT, Role.ADMIN)),
) -> ProductEnvelope:
    command = RejectProduct(
        product_id=product_id,
        reviewer_id=actor.id,
        reviewer_role=actor.role,
        reason=body.reason,
    )
    current_domain.process(command, asynchronous=False)
    return _product_envelope(product_id)


@product_router.post("/bulk-moderate", response_model=BulkModerationResponse)
async def bulk_moderate(
    body: BulkModerationRequest,
    actor: Actor = Depends(require_roles(Role.AGENT, Role.ADMIN)),
) -> BulkModerationResponse:
    command = BulkModerateProducts(
        product_ids=json.dumps(body.product_ids),
        action=body.action,
        reviewer_id=actor.id,
        reviewer_role=actor.role,
        reason=body.reason,
    )
    result = current_domain.process(command, asynchronous=False)
    return BulkModerationResponse(**result)


@product_router.delete("/{product_id}", response_model=StatusResponse)
async def delete_product(product_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    command = DeleteProduct(product_id=product_id, actor_id=actor.id, actor_role=actor.role)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(message="Product deleted")


# ---------------------------------------------------------------------------
# Region Router
# ---------------------------------------------------------------------------
region_router = APIRouter(prefix="/regions", tags=["regions"])


@region_router.get("", response_model=RegionListResponse)
async def list_regions() -> RegionListResponse:
    return RegionListResponse(
        regions=[RegionResponse(name=r.name, districts=list(r.districts)) for r in load_regions()],
    )


@region_router.get("/{region_name}/districts", response_model=DistrictListResponse)
async def list_districts(region_name: str) -> DistrictListResponse:
    return DistrictListResponse(region=region_name, districts=districts_of(region_name))
