# lehenga/domain/models.py

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Union

from utils.formatting import to_float

# ---------------------------------------------------------------------------
# Option domains
# ---------------------------------------------------------------------------

ORDER_STATUSES = (
    "Pending",
    "Confirmed",
    "On Stitching",
    "Stitched",
    "Ready",
    "Delivered",
    "Cancelled",
)
DEFAULT_STATUS = "Pending"
TERMINAL_STATUSES = frozenset({"Delivered", "Cancelled"})

PAYMENT_TYPES = (
    "Cash",
    "Online",
    "UPI-3877",
    "Card-3877",
    "Cash-3F",
    "UPI-19120",
    "Card-19120",
)

STITCHING_OPTIONS = ("Unstitched", "Stitched")
BLOUSE_OPTIONS = ("By Hand", "With LC", "Specific Date")
MAIN_DUPATTA_OPTIONS = (
    "By Hand",
    "With LC - Normal Lace",
    "With LC - Fancy Lace",
    "With LC - Without Lace",
    "With LC - Cutwork",
)
EXTRA_DUPATTA_OPTIONS = ("No", "Yes")
EXTRA_DUPATTA_TYPES = ("Net", "Velvet Stole", "Other")
COLORED_DUPATTA_TYPES = frozenset({"Net", "Velvet Stole"})

ALLOWED_ROLES = frozenset({"admin", "owner", "manager"})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass
class LehengaItem:
    """
    One garment line inside an order. Stored embedded in `Orders.lehengaDetails`.
    """
    design: str = ""
    color: str = ""
    amount: Optional[float] = None
    stitching_option: str = "Unstitched"
    length: str = ""
    waist: str = ""
    hip: str = ""
    blouse_option: str = ""
    blouse_date: str = ""
    main_dupatta: str = ""
    extra_dupatta: str = "No"
    extra_dupatta_type: str = ""
    net_dupatta_color: str = ""
    other_dupatta_type: str = ""
    salesmen: List[str] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "LehengaItem":
        salesmen = record.get("salesmen") or []
        if isinstance(salesmen, str):
            salesmen = [s.strip() for s in salesmen.split(",") if s.strip()]
        return cls(
            design=_text(record.get("design")),
            color=_text(record.get("color")),
            amount=to_float(record.get("amount")),
            stitching_option=_text(record.get("stitchingOption")) or "Unstitched",
            length=_text(record.get("length")),
            waist=_text(record.get("waist")),
            hip=_text(record.get("hip")),
            blouse_option=_text(record.get("blouseOption")),
            blouse_date=_text(record.get("blouseDate")),
            main_dupatta=_text(record.get("mainDupatta")),
            extra_dupatta=_text(record.get("extraDupatta")) or "No",
            extra_dupatta_type=_text(record.get("extraDupattaType")),
            net_dupatta_color=_text(record.get("netDupattaColor")),
            other_dupatta_type=_text(record.get("otherDupattaType")),
            salesmen=[str(s) for s in salesmen],
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "design": self.design,
            "color": self.color,
            "amount": self.amount,
            "stitchingOption": self.stitching_option,
            "length": self.length,
            "waist": self.waist,
            "hip": self.hip,
            "blouseOption": self.blouse_option,
            "blouseDate": self.blouse_date,
            "mainDupatta": self.main_dupatta,
            "extraDupatta": self.extra_dupatta,
            "extraDupattaType": self.extra_dupatta_type,
            "netDupattaColor": self.net_dupatta_color,
            "otherDupattaType": self.other_dupatta_type,
            "salesmen": list(self.salesmen),
        }

    @property
    def is_unstitched(self) -> bool:
        if self.stitching_option == "Unstitched":
            return True
        return not (self.length or self.waist or self.hip)


@dataclass
class Order:
    id: Optional[str] = None
    customer_name: str = ""
    phone_number: str = ""
    bill_number: str = ""
    status: str = DEFAULT_STATUS
    payment_type: str = "Cash"
    notes: str = ""
    delivery_date: Any = ""  # DD-MM-YYYY when written by this app, legacy shapes tolerated
    lehenga_details: List[LehengaItem] = field(default_factory=list)
    total_amount: float = 0.0
    paid_amount: Union[float, str, None] = 0.0  # raw form input until saved
    pending_amount: float = 0.0
    created_at: Any = None  # epoch ms
    created_by: str = ""
    updated_at: Any = None
    updated_by: str = ""

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Order":
        items = record.get("lehengaDetails") or []
        if isinstance(items, dict):
            # legacy documents keyed by index
            items = [items[k] for k in sorted(items, key=lambda k: int(k) if str(k).isdigit() else 0)]
        return cls(
            id=_text(record.get("id")) or None,
            customer_name=_text(record.get("customerName")),
            phone_number=_text(record.get("phoneNumber")),
            bill_number=_text(record.get("billNumber")),
            status=_text(record.get("status")) or DEFAULT_STATUS,
            payment_type=_text(record.get("paymentType")) or "Cash",
            notes=_text(record.get("notes")),
            delivery_date=record.get("deliveryDate") or "",
            lehenga_details=[LehengaItem.from_record(i) for i in items if isinstance(i, dict)],
            total_amount=to_float(record.get("totalAmount"), 0.0),
            paid_amount=to_float(record.get("paidAmount"), 0.0),
            pending_amount=to_float(record.get("pendingAmount"), 0.0),
            created_at=record.get("createdAt"),
            created_by=_text(record.get("createdBy")),
            updated_at=record.get("updatedAt"),
            updated_by=_text(record.get("updatedBy")),
        )

    def to_record(self) -> Dict[str, Any]:
        record = {
            "customerName": self.customer_name,
            "phoneNumber": self.phone_number,
            "billNumber": self.bill_number,
            "status": self.status,
            "paymentType": self.payment_type,
            "notes": self.notes,
            "deliveryDate": self.delivery_date,
            "lehengaDetails": [i.to_record() for i in self.lehenga_details],
            "totalAmount": self.total_amount,
            "paidAmount": self.paid_amount,
            "pendingAmount": self.pending_amount,
            "createdAt": self.created_at,
            "createdBy": self.created_by,
            "updatedAt": self.updated_at,
            "updatedBy": self.updated_by,
        }
        if self.id:
            record["id"] = self.id
        return record

    @property
    def designs(self) -> List[str]:
        return [i.design for i in self.lehenga_details if i.design]


@dataclass
class StockItem:
    id: Optional[str] = None
    design: str = ""
    amount: float = 0.0
    barcode: str = ""

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "StockItem":
        return cls(
            id=_text(record.get("id")) or None,
            design=_text(record.get("design")),
            amount=to_float(record.get("amount"), 0.0),
            barcode=_text(record.get("barcode")),
        )

    def to_record(self) -> Dict[str, Any]:
        return {"design": self.design, "amount": self.amount, "barcode": self.barcode}


@dataclass
class Salesman:
    id: Optional[str] = None
    name: str = ""
    phone: str = ""
    active: bool = True
    created_at: Any = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Salesman":
        active = record.get("active")
        return cls(
            id=_text(record.get("id")) or None,
            name=_text(record.get("name")),
            phone=_text(record.get("phone")),
            active=True if active is None else bool(active),
            created_at=record.get("createdAt"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "active": self.active,
            "createdAt": self.created_at,
        }


@dataclass
class StoreSettings:
    store_name: str = "Lehenga Store"
    currency: str = "Indian Rupee (₹)"
    date_format: str = "DD/MM/YYYY"
    email_notifications: bool = True
    low_stock_threshold: float = 5000.0
    auto_backup: bool = True
    theme: str = "dark"
    primary_color: str = "#6366f1"
    store_address: str = ""
    store_phone: str = ""
    gstin: str = ""
    sticker_shop_name: str = ""
    instagram_handle: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)  # keys this app does not know about

    _WIRE_NAMES = {
        "store_name": "storeName",
        "currency": "currency",
        "date_format": "dateFormat",
        "email_notifications": "emailNotifications",
        "low_stock_threshold": "lowStockThreshold",
        "auto_backup": "autoBackup",
        "theme": "theme",
        "primary_color": "primaryColor",
        "store_address": "storeAddress",
        "store_phone": "storePhone",
        "gstin": "gstin",
        "sticker_shop_name": "stickerShopName",
        "instagram_handle": "instagramHandle",
    }

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> "StoreSettings":
        """
        Merge a stored settings record over the defaults.
        """
        record = dict(record or {})
        defaults = cls()
        values: Dict[str, Any] = {}
        for attr, wire in cls._WIRE_NAMES.items():
            if wire in record and record[wire] is not None:
                values[attr] = record.pop(wire)
        if "low_stock_threshold" in values:
            values["low_stock_threshold"] = to_float(
                values["low_stock_threshold"], defaults.low_stock_threshold
            )
        record.pop("id", None)
        return replace(defaults, extra=record, **values)

    def to_record(self) -> Dict[str, Any]:
        record = dict(self.extra)
        for attr, wire in self._WIRE_NAMES.items():
            record[wire] = getattr(self, attr)
        return record

    @property
    def print_shop_name(self) -> str:
        return self.sticker_shop_name or self.store_name


@dataclass
class AppUser:
    uid: str
    email: str
    role: str
    name: str = ""
    two_factor_enabled: bool = False
    permissions: List[str] = field(default_factory=list)
    login_count: int = 0

    @property
    def display_name(self) -> str:
        return self.name or self.email


@dataclass
class Notification:
    id: str
    category: str  # overdue | new | payment
    title: str
    message: str
    order_id: Optional[str]
    timestamp: int  # epoch ms
    priority: int


@dataclass
class Suggestion:
    id: str
    kind: str  # warning | info | error
    message: str
    action: str  # what the orders view should do when clicked
    priority: int
    count: int = 0


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
