# provide dataclass models for backend entities

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from api.statuses import (
    ConsignmentStatus,
    OrderDetailStatus,
    OrderStatus,
    Role,
    SaleRequestStatus,
    WithdrawalStatus,
)

_ODATA_ANNOTATION = re.compile(r"@odata\.")


def camelize(obj: Any) -> Any:
    """
    Recursively turn OData PascalCase keys into the camelCase the REST
    endpoints use ("KoiFishId" -> "koiFishId"). Annotations like
    "@odata.count" are dropped.
    """
    if isinstance(obj, list):
        return [camelize(x) for x in obj]
    if not isinstance(obj, dict):
        return obj
    out: Dict[str, Any] = {}
    for key, value in obj.items():
        if _ODATA_ANNOTATION.search(key):
            continue
        new_key = key[:1].lower() + key[1:] if key else key
        out[new_key] = camelize(value)
    return out


def _int(val: Any, default: int = 0) -> int:
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


def _opt_int(val: Any) -> Optional[int]:
    try:
        return int(val)
    except (TypeError, ValueError):
        return None


def _gender(val: Any) -> Optional[str]:
    # OData exposes gender as a bool, REST as text
    if isinstance(val, bool):
        return "Male" if val else "Female"
    return val


@dataclass(frozen=True)
class User:
    id: int
    email: str
    full_name: str = ""
    phone_number: Optional[str] = None
    address: Optional[str] = None
    dob: Optional[str] = None
    profile_picture_url: Optional[str] = None
    is_active: bool = True
    loyalty_points: int = 0
    role: Optional[Role] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "User":
        return cls(
            id=_int(d.get("id")),
            email=d.get("email") or "",
            full_name=d.get("fullName") or "",
            phone_number=d.get("phoneNumber"),
            address=d.get("address"),
            dob=d.get("dob"),
            profile_picture_url=d.get("profilePictureUrl"),
            is_active=bool(d.get("isActive", True)),
            loyalty_points=_int(d.get("loyaltyPoints")),
            role=Role.decode_optional(d.get("roleName")),
        )


@dataclass(frozen=True)
class LoginTokens:
    access_token: str
    refresh_token: Optional[str] = None
    user_id: Optional[int] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "LoginTokens":
        token = d.get("accessToken") or d.get("token") or d.get("jwt")
        if not token:
            raise ValueError("login response carries no access token")
        return cls(
            access_token=token,
            refresh_token=d.get("refreshToken"),
            user_id=_opt_int(d.get("userId") or d.get("id")),
        )


@dataclass(frozen=True)
class KoiBreed:
    id: int
    name: str
    content: str = ""
    image_url: Optional[str] = None
    is_deleted: bool = False

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "KoiBreed":
        return cls(
            id=_int(d.get("id")),
            name=d.get("name") or "",
            content=d.get("content") or "",
            image_url=d.get("imageUrl"),
            is_deleted=bool(d.get("isDeleted", False)),
        )


@dataclass(frozen=True)
class KoiFishImage:
    id: int
    image_url: str
    koi_fish_id: Optional[int] = None
    name: Optional[str] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "KoiFishImage":
        return cls(
            id=_int(d.get("id")),
            image_url=d.get("imageUrl") or "",
            koi_fish_id=_opt_int(d.get("koiFishId")),
            name=d.get("name"),
        )


@dataclass(frozen=True)
class KoiCertificate:
    id: int
    koi_fish_id: int
    certificate_type: str
    certificate_url: str
    created_at: Optional[str] = None
    is_deleted: bool = False

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "KoiCertificate":
        return cls(
            id=_int(d.get("id")),
            koi_fish_id=_int(d.get("koiFishId")),
            certificate_type=d.get("certificateType") or "",
            certificate_url=d.get("certificateUrl") or "",
            created_at=d.get("createdAt"),
            is_deleted=bool(d.get("isDeleted", False)),
        )

    @classmethod
    def from_odata(cls, d: Dict[str, Any]) -> "KoiCertificate":
        return cls.from_api(camelize(d))


CERTIFICATE_TYPES = ("Birth Certificate", "Breed Certificate", "Award Certificate")


@dataclass(frozen=True)
class Diet:
    id: int
    name: str
    diet_cost: int
    description: str = ""
    is_deleted: bool = False

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "Diet":
        return cls(
            id=_int(d.get("id")),
            name=d.get("name") or "",
            diet_cost=_int(d.get("dietCost")),
            description=d.get("description") or "",
            is_deleted=bool(d.get("isDeleted", False)),
        )

    @classmethod
    def from_odata(cls, d: Dict[str, Any]) -> "Diet":
        return cls.from_api(camelize(d))


@dataclass(frozen=True)
class Consignment:
    id: int
    koi_fish_id: int
    status: ConsignmentStatus
    diet_id: Optional[int] = None
    customer_id: Optional[int] = None
    staff_id: Optional[int] = None
    consignment_date: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    note: Optional[str] = None
    diet_cost: int = 0
    labor_cost: Optional[int] = None
    daily_feed_amount: Optional[float] = None
    total_days: int = 0
    projected_cost: int = 0
    actual_cost: Optional[int] = None
    inspection_required: Optional[bool] = None
    inspection_date: Optional[str] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "Consignment":
        return cls(
            id=_int(d.get("id")),
            koi_fish_id=_int(d.get("koiFishId")),
            status=ConsignmentStatus.decode(d.get("consignmentStatus")),
            diet_id=_opt_int(d.get("dietId")),
            customer_id=_opt_int(d.get("customerId")),
            staff_id=_opt_int(d.get("staffId")),
            consignment_date=d.get("consignmentDate"),
            start_date=d.get("startDate"),
            end_date=d.get("endDate"),
            note=d.get("note"),
            diet_cost=_int(d.get("dietCost")),
            labor_cost=_opt_int(d.get("laborCost")),
            daily_feed_amount=d.get("dailyFeedAmount"),
            total_days=_int(d.get("totalDays")),
            projected_cost=_int(d.get("projectedCost")),
            actual_cost=_opt_int(d.get("actualCost")),
            inspection_required=d.get("inspectionRequired"),
            inspection_date=d.get("inspectionDate"),
        )


@dataclass(frozen=True)
class KoiFish:
    id: int
    name: str
    price: int
    origin: Optional[str] = None
    gender: Optional[str] = None
    dob: Optional[str] = None
    age: Optional[int] = None
    length: Optional[float] = None
    weight: Optional[float] = None
    personality_traits: Optional[str] = None
    daily_feed_amount: Optional[float] = None
    last_health_check: Optional[str] = None
    is_available_for_sale: Optional[bool] = None
    is_consigned: Optional[bool] = None
    is_sold: Optional[bool] = None
    owner_id: Optional[int] = None
    breeds: List[KoiBreed] = field(default_factory=list)
    images: List[KoiFishImage] = field(default_factory=list)
    certificates: List[KoiCertificate] = field(default_factory=list)
    consignments: List[Consignment] = field(default_factory=list)

    @property
    def image_url(self) -> Optional[str]:
        return self.images[0].image_url if self.images else None

    @property
    def breed_names(self) -> List[str]:
        return [b.name for b in self.breeds]

    @property
    def open_consignment(self) -> Optional[Consignment]:
        return next((c for c in self.consignments if c.status.is_open), None)

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "KoiFish":
        images = [KoiFishImage.from_api(i) for i in d.get("koiFishImages") or []]
        # OData rows carry a single flat ImageUrl instead of the image list
        if not images and d.get("imageUrl"):
            images = [KoiFishImage(id=0, image_url=d["imageUrl"])]
        return cls(
            id=_int(d.get("id")),
            name=d.get("name") or "",
            price=_int(d.get("price")),
            origin=d.get("origin"),
            gender=_gender(d.get("gender")),
            dob=d.get("dob"),
            age=_opt_int(d.get("age")),
            length=d.get("length"),
            weight=d.get("weight"),
            personality_traits=d.get("personalityTraits"),
            daily_feed_amount=d.get("dailyFeedAmount"),
            last_health_check=d.get("lastHealthCheck"),
            is_available_for_sale=d.get("isAvailableForSale"),
            is_consigned=d.get("isConsigned"),
            is_sold=d.get("isSold"),
            owner_id=_opt_int(d.get("ownerId")),
            breeds=[KoiBreed.from_api(b) for b in d.get("koiBreeds") or []],
            images=images,
            certificates=[
                KoiCertificate.from_api(c) for c in d.get("koiCertificates") or []
            ],
            consignments=[
                Consignment.from_api(c)
                for c in (d.get("consignments") or d.get("consignmentForNurtures") or [])
            ],
        )

    @classmethod
    def from_odata(cls, d: Dict[str, Any]) -> "KoiFish":
        return cls.from_api(camelize(d))


@dataclass(frozen=True)
class OrderDetail:
    id: int
    koi_fish_id: int
    price: int
    status: OrderDetailStatus
    order_id: Optional[int] = None
    consignment_id: Optional[int] = None
    staff_id: Optional[int] = None
    koi_fish: Optional[KoiFish] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "OrderDetail":
        fish = d.get("koiFish")
        return cls(
            id=_int(d.get("id")),
            koi_fish_id=_int(d.get("koiFishId")),
            price=_int(d.get("price")),
            status=OrderDetailStatus.decode(d.get("status")),
            order_id=_opt_int(d.get("orderId")),
            consignment_id=_opt_int(d.get("consignmentForNurtureId")),
            staff_id=_opt_int(d.get("staffId")),
            koi_fish=KoiFish.from_api(fish) if fish else None,
        )


@dataclass(frozen=True)
class Order:
    id: int
    status: OrderStatus
    total_amount: int
    order_date: Optional[str] = None
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    shipping_address: Optional[str] = None
    payment_method: Optional[str] = None
    note: Optional[str] = None
    details: List[OrderDetail] = field(default_factory=list)

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "Order":
        return cls(
            id=_int(d.get("id")),
            status=OrderStatus.decode(d.get("orderStatus")),
            total_amount=_int(d.get("totalAmount")),
            order_date=d.get("orderDate"),
            user_id=_opt_int(d.get("userId")),
            user_name=d.get("userName"),
            shipping_address=d.get("shippingAddress"),
            payment_method=d.get("paymentMethod"),
            note=d.get("note"),
            details=[OrderDetail.from_api(x) for x in d.get("orderDetails") or []],
        )


@dataclass(frozen=True)
class Wallet:
    user_id: int
    balance: int
    loyalty_points: int = 0
    status: Optional[str] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "Wallet":
        return cls(
            user_id=_int(d.get("userId")),
            balance=_int(d.get("balance")),
            loyalty_points=_int(d.get("loyaltyPoints")),
            status=d.get("status"),
        )


@dataclass(frozen=True)
class WalletTransaction:
    transaction_type: str
    amount: int
    order_id: Optional[int] = None
    payment_method: Optional[str] = None
    balance_before: Optional[int] = None
    balance_after: Optional[int] = None
    transaction_date: Optional[str] = None
    transaction_status: Optional[str] = None
    note: Optional[str] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "WalletTransaction":
        return cls(
            transaction_type=d.get("transactionType") or "",
            amount=_int(d.get("amount")),
            order_id=_opt_int(d.get("orderId")),
            payment_method=d.get("paymentMethod"),
            balance_before=_opt_int(d.get("balanceBefore")),
            balance_after=_opt_int(d.get("balanceAfter")),
            transaction_date=d.get("transactionDate"),
            transaction_status=d.get("transactionStatus"),
            note=d.get("note"),
        )


@dataclass(frozen=True)
class DepositResult:
    pay_url: str
    transaction: Optional[WalletTransaction] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "DepositResult":
        tx = d.get("transaction")
        return cls(
            pay_url=d.get("payUrl") or d.get("checkoutUrl") or "",
            transaction=WalletTransaction.from_api(tx) if tx else None,
        )


@dataclass(frozen=True)
class RequestForSale:
    id: int
    koi_fish_id: int
    price_dealed: int
    status: SaleRequestStatus
    user_id: Optional[int] = None
    note: Optional[str] = None
    created_at: Optional[str] = None
    modified_at: Optional[str] = None
    koi_fish: Optional[KoiFish] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "RequestForSale":
        fish = d.get("koiFish")
        return cls(
            id=_int(d.get("id")),
            koi_fish_id=_int(d.get("koiFishId")),
            price_dealed=_int(d.get("priceDealed")),
            status=SaleRequestStatus.decode(d.get("requestStatus")),
            user_id=_opt_int(d.get("userId")),
            note=d.get("note"),
            created_at=d.get("createdAt"),
            modified_at=d.get("modifiedAt"),
            koi_fish=KoiFish.from_api(fish) if fish else None,
        )

    @classmethod
    def from_odata(cls, d: Dict[str, Any]) -> "RequestForSale":
        return cls.from_api(camelize(d))


@dataclass(frozen=True)
class WithdrawnRequest:
    id: int
    amount: int
    status: WithdrawalStatus
    bank_note: str = ""
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    request_date: Optional[str] = None
    created_at: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "WithdrawnRequest":
        user = d.get("user") or {}
        return cls(
            id=_int(d.get("id")),
            amount=_int(d.get("amount")),
            status=WithdrawalStatus.decode(d.get("status")),
            bank_note=d.get("bankNote") or "",
            user_id=_opt_int(d.get("userId")),
            user_name=user.get("fullName") if isinstance(user, dict) else None,
            request_date=d.get("requestDate"),
            created_at=d.get("createdAt"),
            image_url=d.get("imageUrl"),
        )


@dataclass(frozen=True)
class Faq:
    id: int
    question: str
    answer: str
    created_at: Optional[str] = None

    @classmethod
    def from_api(cls, d: Dict[str, Any]) -> "Faq":
        return cls(
            id=_int(d.get("id")),
            question=d.get("question") or "",
            answer=d.get("answer") or "",
            created_at=d.get("createdAt"),
        )


# ---------------------------
# Write-only payloads
# ---------------------------


@dataclass(frozen=True)
class PurchaseFish:
    fish_id: int
    is_nuture: bool
    diet_id: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    note: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        # the backend spells it "isNuture"
        payload: Dict[str, Any] = {"fishId": self.fish_id, "isNuture": self.is_nuture}
        optional = {
            "dietId": self.diet_id,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "note": self.note,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        return payload


@dataclass(frozen=True)
class CreateOrderRequest:
    purchase_fishes: List[PurchaseFish]
    shipping_address: str
    note: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "purchaseFishes": [p.to_payload() for p in self.purchase_fishes],
            "shippingAddress": self.shipping_address,
        }
        if self.note:
            payload["note"] = self.note
        return payload
