"""AuthRecord — the credentials issued to the app by one platform instance."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from app_auth.apl.urls import canonicalize


class AuthRecord(BaseModel):
    """Auth data for a single installation of the app.

    Parameters
    ----------
    app_id:
        Identifier the platform assigned to this installation.
    api_url:
        GraphQL endpoint of the platform instance. Serialized as
        ``saleorApiUrl``.
    token:
        Bearer token used for API calls back to the platform.
    jwks:
        JSON Web Key Set used to verify webhook signatures. ``None`` until
        the first key set has been fetched.
    """

    app_id: str = Field(alias="appId")
    api_url: str = Field(alias="saleorApiUrl")
    token: str
    jwks: Optional[str] = None

    model_config = {"populate_by_name": True}

    def with_canonical_url(self) -> "AuthRecord":
        """Return a copy whose ``api_url`` is in canonical form."""
        return self.model_copy(update={"api_url": canonicalize(self.api_url)})

    def to_wire(self) -> dict[str, object]:
        """Serialize to the camelCase shape used by the platform."""
        return self.model_dump(by_alias=True)
