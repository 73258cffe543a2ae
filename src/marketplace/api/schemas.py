"""Pydantic request/response schemas for the marketplace API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. Responses are built from aggregates with the
``from_*`` constructors below.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    success: bool = True
    message: str = "ok"


class CartEntrySchema(BaseModel):
    product_id: str
    quantity: int = 1


class ShippingAddressSchema(BaseModel):
    recipient_name: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, max_length=20)
    address: str = Field(..., min_length=1, max_length=500)
    district: str | None = Field(None, max_length=100)
    region: str | None = Field(None, max_length=100)


# ---------------------------------------------------------------------------
# Auth & users
# ---------------------------------------------------------------------------
class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=6, max_length=128)
    phone_number: str | None = Field(None, max_length=20)
    region: str | None = None
    district: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Rahim Uddin",
                    "email": "rahim@example.com",
                    "password": "secret123",
                    "phone_number": "+8801700000000",
                    "region": "Dhaka",
                    "district": "Gazipur",
                }
            ]
        }
    }


class LoginRequest(BaseModel):
    email: str
    password: str


class ChangeRoleRequest(BaseModel):
    role: str
    region: str | None = None
    district: str | None = None


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    phone_number: str | None = None
    region: str | None = None
    district: str | None = None
    verified: bool = False

    @classmethod
    def from_user(cls, user):
        return cls(**user.to_profile())


class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: UserResponse


class UserEnvelope(BaseModel):
    success: bool = True
    user: UserResponse


class UserListResponse(BaseModel):
    success: bool = True
    users: list[UserResponse]


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------
class SubmitApplicationRequest(BaseModel):
    application_type: str
    business_name: str | None = Field(None, max_length=200)
    region: str
    district: str | None = None
    details: dict = Field(default_factory=dict)


class ReviewApplicationRequest(BaseModel):
    status: str
    note: str | None = Field(None, max_length=2000)


class ApplicationNoteRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)


class ReviewNoteResponse(BaseModel):
    author_id: str
    text: str
    created_at: datetime | None = None


class ApplicationResponse(BaseModel):
    id: str
    applicant_id: str
    application_type: str
    business_name: str | None = None
    region: str
    district: str | None = None
    details: dict
    status: str
    notes: list[ReviewNoteResponse]
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    submitted_at: datetime | None = None

    @classmethod
    def from_application(cls, application):
        notes = sorted(application.notes, key=lambda n: n.created_at)
        return cls(
            id=str(application.id),
            applicant_id=str(application.applicant_id),
            application_type=application.application_type,
            business_name=application.business_name,
            region=application.region,
            district=application.district,
            details=application.details_dict,
            status=application.status,
            notes=[
                ReviewNoteResponse(author_id=str(n.author_id), text=n.text, created_at=n.created_at) for n in notes
            ],
            reviewed_by=str(application.reviewed_by) if application.reviewed_by else None,
            reviewed_at=application.reviewed_at,
            submitted_at=application.submitted_at,
        )


class ApplicationEnvelope(BaseModel):
    success: bool = True
    application: ApplicationResponse


class ApplicationListResponse(BaseModel):
    success: bool = True
    applications: list[ApplicationResponse]


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class CreateProductRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    crop_type: str = Field(..., min_length=1, max_length=100)
    price_per_unit: float = Field(..., ge=0)
    unit: str = "kg"
    minimum_order_quantity: int = Field(1, ge=1)
    available_stock: int = Field(..., ge=0)
    quality: str = "A"
    harvest_date: date | None = None
    region: str | None = None
    district: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Miniket Rice",
                    "crop_type": "rice",
                    "price_per_unit": 62.5,
                    "unit": "kg",
                    "minimum_order_quantity": 10,
                    "available_stock": 500,
                    "quality": "A",
                }
            ]
        }
    }


class RejectProductRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class BulkModerationRequest(BaseModel):
    product_ids: list[str] = Field(..., min_length=1)
    action: str
    reason: str | None = Field(None, max_length=500)


class SellerInfoResponse(BaseModel):
    seller_id: str
    name: str
    email: str | None = None
    region: str
    district: str | None = None


class ProductResponse(BaseModel):
    id: str
    title: str
    description: str | None = None
    crop_type: str
    price_per_unit: float
    unit: str
    minimum_order_quantity: int
    available_stock: int
    seller: SellerInfoResponse
    quality: str
    harvest_date: date | None = None
    status: str
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_product(cls, product):
        return cls(
            id=str(product.id),
            title=product.title,
            description=product.description,
            crop_type=product.crop_type,
            price_per_unit=product.price_per_unit,
            unit=product.unit,
            minimum_order_quantity=product.minimum_order_quantity,
            available_stock=product.available_stock,
            seller=SellerInfoResponse(
                seller_id=str(product.seller.seller_id),
                name=product.seller.name,
                email=product.seller.email,
                region=product.seller.region,
                district=product.seller.district,
            ),
            quality=product.quality,
            harvest_date=product.harvest_date,
            status=product.status,
            approved_by=str(product.approved_by) if product.approved_by else None,
            approved_at=product.approved_at,
            rejection_reason=product.rejection_reason,
            created_at=product.created_at,
        )


class ProductEnvelope(BaseModel):
    success: bool = True
    product: ProductResponse


class ProductListResponse(BaseModel):
    success: bool = True
    products: list[ProductResponse]
    total: int
    page: int = 1
    limit: int


class OperationalArea(BaseModel):
    region: str | None = None
    district: str | None = None


class AreaProductListResponse(ProductListResponse):
    operational_area: OperationalArea


class ProductStatistics(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    by_region: dict[str, int] | None = None
    by_crop_type: dict[str, int] | None = None
    by_status: dict[str, int] | None = None


class ProductStatisticsResponse(BaseModel):
    success: bool = True
    statistics: ProductStatistics


class CropTypesResponse(BaseModel):
    success: bool = True
    crop_types: list[str]


class ModerationFailure(BaseModel):
    product_id: str | None = None
    reason: str


class BulkModerationResponse(BaseModel):
    success: bool = True
    successful: list[str]
    failed: list[ModerationFailure]
    total: int


# ---------------------------------------------------------------------------
# Regions
# ---------------------------------------------------------------------------
class RegionResponse(BaseModel):
    name: str
    districts: list[str]


class RegionListResponse(BaseModel):
    success: bool = True
    regions: list[RegionResponse]


class DistrictListResponse(BaseModel):
    success: bool = True
    region: str
    districts: list[str]


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    email: str
    product_id: str
    quantity: int = Field(1, ge=1)


class AddMultipleToCartRequest(BaseModel):
    email: str
    items: list[CartEntrySchema] = Field(..., min_length=1)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int


class BatchOperationSchema(BaseModel):
    target_id: str
    kind: str
    quantity: int | None = None


class BatchUpdateCartRequest(BaseModel):
    operations: list[BatchOperationSchema]


class PreviewMergeRequest(BaseModel):
    items: list[CartEntrySchema]


class CartItemResponse(BaseModel):
    product_id: str
    title: str
    price: float
    unit: str | None = None
    quantity: int
    minimum_order_quantity: int
    seller_id: str | None = None
    seller_name: str | None = None
    line_total: float
    added_at: datetime | None = None


class CartResponse(BaseModel):
    success: bool = True
    email: str
    items: list[CartItemResponse]
    total_items: int
    subtotal: float
    delivery_charge: float
    total_amount: float

    @classmethod
    def from_cart(cls, cart, **extra):
        items = sorted(cart.items, key=lambda i: (i.added_at is None, i.added_at))
        return cls(
            email=cart.owner_email,
            items=[
                CartItemResponse(
                    product_id=str(i.product_id),
                    title=i.title,
                    price=i.price,
                    unit=i.unit,
                    quantity=i.quantity,
                    minimum_order_quantity=i.minimum_order_quantity,
                    seller_id=str(i.seller_id) if i.seller_id else None,
                    seller_name=i.seller_name,
                    line_total=round(i.line_total, 2),
                    added_at=i.added_at,
                )
                for i in items
            ],
            total_items=cart.total_items,
            subtotal=cart.subtotal,
            delivery_charge=cart.delivery_charge or 0.0,
            total_amount=cart.total_amount,
            **extra,
        )


class CartFailure(BaseModel):
    product_id: str | None = None
    reason: str


class AddMultipleResponse(CartResponse):
    added: int
    merged: int
    failed: list[CartFailure]


class BatchUpdateResponse(CartResponse):
    applied: int


class PreviewMergeResponse(BaseModel):
    success: bool = True
    current_line_count: int
    candidate_line_count: int
    final_line_count: int
    merged_line_count: int
    total_quantity_delta: int


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    items: list[CartEntrySchema] = Field(default_factory=list)
    from_cart: bool = False
    shipping_address: ShippingAddressSchema
    payment_method: str = "cash"
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "quantity": 20}],
                    "shipping_address": {
                        "recipient_name": "Rahim Uddin",
                        "phone": "+8801700000000",
                        "address": "House 12, Road 5, Dhanmondi",
                        "district": "Dhaka",
                        "region": "Dhaka",
                    },
                    "payment_method": "cash",
                }
            ]
        }
    }


class DeliveryStatusRequest(BaseModel):
    delivery_status: str


class OrderLineResponse(BaseModel):
    product_id: str
    title: str
    unit: str | None = None
    quantity: int
    price: float
    seller_id: str | None = None
    seller_name: str | None = None
    seller_region: str | None = None


class FeesResponse(BaseModel):
    delivery: float
    platform: float
    agent_commission: float


class BuyerResponse(BaseModel):
    buyer_id: str
    email: str
    name: str | None = None
    region: str | None = None


class TimelineEntryResponse(BaseModel):
    sequence: int
    status: str
    delivery_status: str
    actor_id: str | None = None
    actor_role: str | None = None
    note: str | None = None
    timestamp: datetime


class OrderResponse(BaseModel):
    id: str
    order_number: str
    buyer: BuyerResponse
    items: list[OrderLineResponse]
    subtotal: float
    fees: FeesResponse
    total_amount: float
    payment_method: str
    shipping_address: ShippingAddressSchema | None = None
    status: str
    delivery_status: str
    timeline: list[TimelineEntryResponse]
    delivered_at: datetime | None = None
    returned_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_order(cls, order):
        address = order.shipping_address
        fees = order.fees
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            buyer=BuyerResponse(
                buyer_id=str(order.buyer.buyer_id),
                email=order.buyer.email,
                name=order.buyer.name,
                region=order.buyer.region,
            ),
            items=[
                OrderLineResponse(
                    product_id=str(line.product_id),
                    title=line.title,
                    unit=line.unit,
                    quantity=line.quantity,
                    price=line.price,
                    seller_id=str(line.seller_id) if line.seller_id else None,
                    seller_name=line.seller_name,
                    seller_region=line.seller_region,
                )
                for line in order.items
            ],
            subtotal=order.subtotal,
            fees=FeesResponse(
                delivery=fees.delivery if fees else 0.0,
                platform=fees.platform if fees else 0.0,
                agent_commission=fees.agent_commission if fees else 0.0,
            ),
            total_amount=order.total_amount,
            payment_method=order.payment_method,
            shipping_address=ShippingAddressSchema(
                recipient_name=address.recipient_name,
                phone=address.phone,
                address=address.address,
                district=address.district,
                region=address.region,
            )
            if address
            else None,
            status=order.status,
            delivery_status=order.delivery_status,
            timeline=[
                TimelineEntryResponse(
                    sequence=entry.sequence,
                    status=entry.status,
                    delivery_status=entry.delivery_status,
                    actor_id=str(entry.actor_id) if entry.actor_id else None,
                    actor_role=entry.actor_role,
                    note=entry.note,
                    timestamp=entry.timestamp,
                )
                for entry in order.history
            ],
            delivered_at=order.delivered_at,
            returned_at=order.returned_at,
            created_at=order.created_at,
        )


class OrderEnvelope(BaseModel):
    success: bool = True
    order: OrderResponse


class OrderListResponse(BaseModel):
    success: bool = True
    orders: list[OrderResponse]
