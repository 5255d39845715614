"""
Vendor API Configuration Schema - One configured inventory source.

Documents live in the 'vendor_apis' collection and use the camelCase field
names the admin tooling writes (vendorId, appId, appSecret, ...).
"""
import base64
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from core.models.common import PyObjectId


AdapterName = Literal["generic", "wholecell"]


class VendorApiConfig(BaseModel):
    """
    Credentials and adapter selection for one vendor feed.

    Examples:
        # Generic vendor: creates products and conditions on first sighting
        VendorApiConfig(vendorId="64f0...", appId="app", appSecret="secret")

        # Wholecell vendor: fixed condition, catalog products only
        VendorApiConfig(
            vendorId="64f0...",
            appId="app",
            appSecret="secret",
            adapter="wholecell",
            conditionId="65a1...",
        )
    """
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True, extra="ignore")

    vendor_id: Annotated[str, BeforeValidator(str)] = Field(..., alias="vendorId")
    name: Optional[str] = None
    app_id: str = Field(..., alias="appId")
    app_secret: str = Field(..., alias="appSecret", repr=False)
    adapter: AdapterName = "generic"
    base_url: Optional[str] = Field(None, alias="baseUrl")
    condition_id: Optional[PyObjectId] = Field(None, alias="conditionId")

    @model_validator(mode="after")
    def _wholecell_needs_condition(self):
        if self.adapter == "wholecell" and self.condition_id is None:
            raise ValueError("wholecell vendors require a fixed conditionId")
        return self

    def basic_auth_header(self) -> str:
        """Authorization header value: Basic base64(appId:appSecret)."""
        token = base64.b64encode(f"{self.app_id}:{self.app_secret}".encode("utf-8")).decode("ascii")
        return f"Basic {token}"
