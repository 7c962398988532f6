from temporalio.client import Client
from utils.config import Settings


async def get_temporal_client(settings: Settings) -> Client:
    """
    Connect to Temporal using the configured host, port and namespace
    """
    client = await Client.connect(settings.temporal_address, namespace=settings.temporal_namespace)
    return client
