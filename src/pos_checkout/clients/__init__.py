from .campaigns_client import CampaignsClient
from .customers_client import CustomersClient
from .products_client import ProductsClient
from .sales_client import SalesClient
from .settings_client import SettingsClient

__all__ = [
    "CampaignsClient",
    "CustomersClient",
    "ProductsClient",
    "SalesClient",
    "SettingsClient",
]
