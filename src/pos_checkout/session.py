from __future__ import annotations

from dataclasses import dataclass

from .clients.campaigns_client import CampaignsClient
from .clients.customers_client import CustomersClient
from .clients.products_client import ProductsClient
from .clients.sales_client import SalesClient
from .clients.settings_client import SettingsClient
from .config import ClientConfig
from .http_client import HttpClient, TraceContext


@dataclass
class ApiSession:
    config: ClientConfig
    token: str | None = None
    company_id: str | None = None
    trace: TraceContext | None = None
    http: HttpClient | None = None

    def __post_init__(self) -> None:
        self.trace = self.trace or TraceContext()
        # one pooled client so the product cache and connections are shared
        self.http = self.http or HttpClient(config=self.config, trace=self.trace)

    def products_client(self) -> ProductsClient:
        return ProductsClient(http=self.http, access_token=self.token, company_id=self.company_id)

    def customers_client(self) -> CustomersClient:
        return CustomersClient(http=self.http, access_token=self.token, company_id=self.company_id)

    def campaigns_client(self) -> CampaignsClient:
        return CampaignsClient(http=self.http, access_token=self.token, company_id=self.company_id)

    def sales_client(self) -> SalesClient:
        return SalesClient(http=self.http, access_token=self.token, company_id=self.company_id)

    def settings_client(self) -> SettingsClient:
        return SettingsClient(http=self.http, access_token=self.token, company_id=self.company_id)
