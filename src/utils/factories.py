import base64
import uuid

from src.models.auth import AuthData


def _global_id(typename: str) -> str:
    """Build a platform-style global ID (base64 of "Type:pk")."""
    return base64.b64encode(f"{typename}:{uuid.uuid4()}".encode()).decode()


class AuthDataFactory:
    """Factory for creating AuthData instances with sensible defaults."""

    @staticmethod
    def create(**overrides) -> AuthData:
        defaults = {
            "api_url": "https://shop.example.com/graphql/",
            "token": f"tok_{uuid.uuid4().hex}",
            "app_id": _global_id("App"),
        }
        defaults.update(overrides)
        return AuthData(**defaults)


class EventPayloadFactory:
    """Factory for the payloads the platform delivers for each subscription."""

    @staticmethod
    def source_object(typename: str = "Checkout", **kwargs) -> dict:
        amount = kwargs.get("amount", 100.0)
        currency = kwargs.get("currency", "USD")
        address = {
            "firstName": "Ada",
            "lastName": "Lovelace",
            "phone": "+48123456789",
            "city": "WROCLAW",
            "streetAddress1": "Teczowa 7",
            "streetAddress2": "",
            "postalCode": "53-601",
            "countryArea": "",
            "companyName": "",
            "country": {"code": kwargs.get("country", "PL")},
        }
        base = {
            "__typename": typename,
            "id": _global_id(typename),
            "channel": {"id": _global_id("Channel"), "slug": kwargs.get("channel", "default-channel")},
            "userEmail": kwargs.get("user_email", "ada@example.com"),
            "billingAddress": address,
            "shippingAddress": dict(address),
            "total": {"gross": {"currency": currency, "amount": amount}},
            "shippingPrice": {
                "gross": {"currency": currency, "amount": 0.0},
                "net": {"currency": currency, "amount": 0.0},
                "tax": {"currency": currency, "amount": 0.0},
            },
            "deliveryMethod": {
                "__typename": "ShippingMethod",
                "id": _global_id("ShippingMethod"),
                "name": "Courier",
            },
        }
        line = {
            "__typename": "CheckoutLine" if typename == "Checkout" else "OrderLine",
            "id": _global_id("Line"),
            "quantity": 1,
            "totalPrice": {
                "gross": {"currency": currency, "amount": amount},
                "net": {"currency": currency, "amount": amount},
                "tax": {"currency": currency, "amount": 0.0},
            },
        }
        variant = {
            "name": "Blue / M",
            "sku": "TSHIRT-BLUE-M",
            "product": {
                "name": "T-shirt",
                "thumbnail": {"url": "https://shop.example.com/thumbnail.png"},
                "category": {"name": "Apparel"},
            },
        }
        if typename == "Checkout":
            base["languageCode"] = "EN"
            line["checkoutVariant"] = variant
        else:
            base["languageCodeEnum"] = "EN"
            line["taxRate"] = 0.0
            line["orderVariant"] = variant
        base["lines"] = [line]
        return base

    @staticmethod
    def payment_gateway_initialize_session(**overrides) -> dict:
        amount = overrides.pop("amount", 100.0)
        payload = {
            "__typename": "PaymentGatewayInitializeSession",
            "recipient": {
                "id": _global_id("App"),
                "privateMetadata": [],
                "metadata": [],
            },
            "data": None,
            "amount": amount,
            "issuingPrincipal": {"id": _global_id("User")},
            "sourceObject": EventPayloadFactory.source_object(
                overrides.pop("source_typename", "Checkout"),
                amount=amount,
                currency=overrides.pop("currency", "USD"),
            ),
        }
        payload.update(overrides)
        return payload

    @staticmethod
    def transaction_initialize_session(**overrides) -> dict:
        amount = overrides.pop("amount", 100.0)
        currency = overrides.pop("currency", "USD")
        payload = {
            "__typename": "TransactionInitializeSession",
            "recipient": {
                "id": _global_id("App"),
                "privateMetadata": [],
                "metadata": [],
            },
            "data": None,
            "merchantReference": overrides.pop("merchant_reference", _global_id("TransactionItem")),
            "action": {
                "amount": amount,
                "currency": currency,
                "actionType": overrides.pop("action_type", "CHARGE"),
            },
            "issuingPrincipal": {"id": _global_id("User")},
            "transaction": {
                "id": overrides.pop("transaction_id", _global_id("TransactionItem")),
                "pspReference": "",
            },
            "sourceObject": EventPayloadFactory.source_object(
                overrides.pop("source_typename", "Checkout"),
                amount=amount,
                currency=currency,
            ),
        }
        payload.update(overrides)
        return payload
