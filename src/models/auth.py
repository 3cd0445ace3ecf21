from dataclasses import dataclass


@dataclass(frozen=True)
class AuthData:
    """Credentials of one app installation, as stored in the APL."""

    api_url: str
    token: str
    app_id: str = ""

    def to_dict(self) -> dict:
        return {
            "saleorApiUrl": self.api_url,
            "token": self.token,
            "appId": self.app_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuthData":
        return cls(
            api_url=data["saleorApiUrl"],
            token=data["token"],
            app_id=data.get("appId") or "",
        )
