"""HTTP gateway serving public paths from an S3 bucket."""

from .app import create_app
from .endpoints import Endpoint, EndpointTable
from .proxy import S3Gateway
from .settings import GatewaySettings

__all__ = ["Endpoint", "EndpointTable", "GatewaySettings", "S3Gateway", "create_app"]
