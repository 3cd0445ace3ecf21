from dataclasses import dataclass
from enum import Enum


class TransactionResultType(Enum):
    AUTHORIZATION_SUCCESS = "AUTHORIZATION_SUCCESS"
    AUTHORIZATION_FAILURE = "AUTHORIZATION_FAILURE"
    AUTHORIZATION_ACTION_REQUIRED = "AUTHORIZATION_ACTION_REQUIRED"
    AUTHORIZATION_REQUEST = "AUTHORIZATION_REQUEST"
    CHARGE_SUCCESS = "CHARGE_SUCCESS"
    CHARGE_FAILURE = "CHARGE_FAILURE"
    CHARGE_ACTION_REQUIRED = "CHARGE_ACTION_REQUIRED"
    CHARGE_REQUEST = "CHARGE_REQUEST"


@dataclass
class TransactionResult:
    psp_reference: str
    result: TransactionResultType
    amount: float
    time: str  # ISO 8601
    external_url: str
    message: str

    def to_response(self) -> dict:
        """Render the result with the keys the platform expects."""
        return {
            "pspReference": self.psp_reference,
            "result": self.result.value,
            "amount": self.amount,
            "time": self.time,
            "externalUrl": self.external_url,
            "message": self.message,
        }
