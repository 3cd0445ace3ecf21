from dataclasses import dataclass, field
from typing import Any


class PayloadError(ValueError):
    """Raised when a webhook payload lacks a field the app depends on."""


def _require(data: dict, path: str) -> Any:
    node: Any = data
    for key in path.split("."):
        if not isinstance(node, dict) or node.get(key) is None:
            raise PayloadError(f"missing field: {path}")
        node = node[key]
    return node


def _metadata(items: list | None) -> dict[str, str]:
    return {item["key"]: item["value"] for item in items or []}


@dataclass
class Money:
    amount: float
    currency: str

    @classmethod
    def from_gross(cls, price: dict | None) -> "Money | None":
        """Read the gross part of a TaxedMoney object."""
        gross = (price or {}).get("gross")
        if not gross:
            return None
        return cls(amount=gross.get("amount"), currency=gross.get("currency"))


@dataclass
class Channel:
    id: str
    slug: str

    @classmethod
    def from_dict(cls, data: dict | None) -> "Channel | None":
        if not data:
            return None
        return cls(id=data.get("id"), slug=data.get("slug"))


@dataclass
class Address:
    country_code: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    city: str | None = None
    street_address_1: str | None = None
    street_address_2: str | None = None
    postal_code: str | None = None
    country_area: str | None = None
    company_name: str | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> "Address | None":
        if not data:
            return None
        return cls(
            country_code=(data.get("country") or {}).get("code"),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            phone=data.get("phone"),
            city=data.get("city"),
            street_address_1=data.get("streetAddress1"),
            street_address_2=data.get("streetAddress2"),
            postal_code=data.get("postalCode"),
            country_area=data.get("countryArea"),
            company_name=data.get("companyName"),
        )


@dataclass
class Line:
    id: str
    quantity: int
    total: Money | None = None
    variant_name: str | None = None
    sku: str | None = None
    product_name: str | None = None
    tax_rate: float | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Line":
        # Checkout lines and order lines alias their variant differently
        variant = data.get("checkoutVariant") or data.get("orderVariant") or {}
        return cls(
            id=data.get("id"),
            quantity=data.get("quantity"),
            total=Money.from_gross(data.get("totalPrice")),
            variant_name=variant.get("name"),
            sku=variant.get("sku"),
            product_name=(variant.get("product") or {}).get("name"),
            tax_rate=data.get("taxRate"),
        )


@dataclass
class SourceObject:
    """The checkout or order a payment session is attached to."""

    typename: str
    id: str
    channel: Channel | None = None
    language_code: str | None = None
    user_email: str | None = None
    billing_address: Address | None = None
    shipping_address: Address | None = None
    total: Money | None = None
    shipping_price: Money | None = None
    delivery_method_name: str | None = None
    lines: list[Line] = field(default_factory=list)

    @property
    def is_checkout(self) -> bool:
        return self.typename == "Checkout"

    @classmethod
    def from_dict(cls, data: dict | None) -> "SourceObject | None":
        if not data:
            return None
        return cls(
            typename=data.get("__typename"),
            id=data.get("id"),
            channel=Channel.from_dict(data.get("channel")),
            language_code=data.get("languageCode") or data.get("languageCodeEnum"),
            user_email=data.get("userEmail"),
            billing_address=Address.from_dict(data.get("billingAddress")),
            shipping_address=Address.from_dict(data.get("shippingAddress")),
            total=Money.from_gross(data.get("total")),
            shipping_price=Money.from_gross(data.get("shippingPrice")),
            delivery_method_name=(data.get("deliveryMethod") or {}).get("name"),
            lines=[Line.from_dict(line) for line in data.get("lines") or []],
        )


@dataclass
class Recipient:
    """The app the event is addressed to."""

    id: str
    metadata: dict[str, str] = field(default_factory=dict)
    private_metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict | None) -> "Recipient | None":
        if not data:
            return None
        return cls(
            id=data.get("id"),
            metadata=_metadata(data.get("metadata")),
            private_metadata=_metadata(data.get("privateMetadata")),
        )


@dataclass
class TransactionAction:
    amount: float
    currency: str | None
    action_type: str | None


@dataclass
class TransactionReference:
    id: str
    psp_reference: str | None = None


@dataclass
class PaymentGatewayInitializeSessionEvent:
    recipient: Recipient | None
    data: Any
    amount: float | None
    issuing_principal_id: str | None
    source_object: SourceObject | None

    @classmethod
    def from_dict(cls, payload: dict) -> "PaymentGatewayInitializeSessionEvent":
        if not isinstance(payload, dict):
            raise PayloadError("payload must be a JSON object")
        return cls(
            recipient=Recipient.from_dict(payload.get("recipient")),
            data=payload.get("data"),
            amount=payload.get("amount"),
            issuing_principal_id=(payload.get("issuingPrincipal") or {}).get("id"),
            source_object=SourceObject.from_dict(payload.get("sourceObject")),
        )


@dataclass
class TransactionInitializeSessionEvent:
    recipient: Recipient | None
    data: Any
    merchant_reference: str | None
    action: TransactionAction
    issuing_principal_id: str | None
    transaction: TransactionReference
    source_object: SourceObject | None

    @classmethod
    def from_dict(cls, payload: dict) -> "TransactionInitializeSessionEvent":
        if not isinstance(payload, dict):
            raise PayloadError("payload must be a JSON object")
        action = payload.get("action") or {}
        transaction = payload.get("transaction") or {}
        return cls(
            recipient=Recipient.from_dict(payload.get("recipient")),
            data=payload.get("data"),
            merchant_reference=payload.get("merchantReference"),
            action=TransactionAction(
                amount=_require(payload, "action.amount"),
                currency=action.get("currency"),
                action_type=action.get("actionType"),
            ),
            issuing_principal_id=(payload.get("issuingPrincipal") or {}).get("id"),
            transaction=TransactionReference(
                id=_require(payload, "transaction.id"),
                psp_reference=transaction.get("pspReference"),
            ),
            source_object=SourceObject.from_dict(payload.get("sourceObject")),
        )
