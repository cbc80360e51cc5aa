from typing import Iterable, Optional

import structlog
from pydantic import ValidationError

from stays_sync.network.client import StaysClient
from stays_sync.network.queue import Deadline, RateLimitedQueue
from stays_sync.schemas.remote import RemoteClient

logger = structlog.get_logger(__name__)


def poll_clients(
    client: StaysClient,
    client_ids: Iterable[str],
    queue: RateLimitedQueue,
    deadline: Optional[Deadline] = None,
) -> dict[str, RemoteClient]:
    """
    Fetch guest (client) records once per unique id.

    Returns:
        dict: client id -> RemoteClient, failed fetches omitted
    """
    results = queue.run(client_ids, client.get_client_detail, resource="clients", deadline=deadline)

    clients: dict[str, RemoteClient] = {}
    for client_id, result in results.items():
        if not result.ok:
            continue
        try:
            clients[client_id] = RemoteClient.model_validate(result.value)
        except ValidationError as e:
            logger.warning("client_payload_invalid", client_id=client_id, errors=e.error_count())

    logger.info("clients_fetched", count=len(clients), requested=len(results))
    return clients
