"""
Ticket sources for the Incident Analysis Engine.

Responsible for turning ticket exports into TicketRecord lists:
- JSON or YAML files exported from the ticket store
- An HTTP feed returning the same JSON shape
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml
from pydantic import ValidationError

from .config import SourceConfig
from .models import TicketRecord


logger = logging.getLogger(__name__)


class DataSourceError(Exception):
    """Base exception for data source errors."""
    pass


class TicketFileError(DataSourceError):
    """Error when reading a ticket file."""
    pass


class TicketFeedError(DataSourceError):
    """Error when communicating with the ticket feed."""
    pass


def extract_ticket_list(data: Any) -> list:
    """
    Find the list of ticket payloads in a decoded document.

    Tries multiple possible shapes for forward compatibility:
    a bare list, ``{"tickets": [...]}`` and ``{"data": {"tickets": [...]}}``.

    Args:
        data: Decoded JSON/YAML document.

    Returns:
        List of raw ticket payloads (empty if none found).
    """
    possible_paths = [
        lambda d: d if isinstance(d, list) else None,
        lambda d: d.get("tickets"),
        lambda d: d.get("data", {}).get("tickets"),
    ]

    for path_fn in possible_paths:
        try:
            result = path_fn(data)
            if isinstance(result, list):
                return result
        except (AttributeError, TypeError):
            continue

    return []


def parse_tickets(data: Any) -> list[TicketRecord]:
    """
    Validate raw ticket payloads into TicketRecord objects.

    Unlike lenient catalog parsing, a single malformed ticket fails the
    whole batch: analyses must cover every fetched ticket.

    Args:
        data: Decoded JSON/YAML document.

    Returns:
        List of TicketRecord objects.

    Raises:
        DataSourceError: If a ticket payload is invalid.
    """
    payloads = extract_ticket_list(data)
    if not payloads:
        logger.warning("No tickets found in source document")
        return []

    tickets = []
    for idx, payload in enumerate(payloads):
        try:
            tickets.append(TicketRecord.model_validate(payload))
        except ValidationError as e:
            logger.error(f"Invalid ticket at index {idx}: {e}")
            raise DataSourceError(f"Invalid ticket at index {idx}: {e}") from e

    logger.info(f"Parsed {len(tickets)} tickets")
    return tickets


def load_tickets_file(path: Path) -> list[TicketRecord]:
    """
    Load tickets from a JSON or YAML file.

    Files ending in ``.yaml``/``.yml`` are parsed as YAML, everything
    else as JSON.

    Args:
        path: Path to the ticket file.

    Returns:
        List of TicketRecord objects.

    Raises:
        TicketFileError: If the file cannot be read or decoded.
        DataSourceError: If a ticket payload is invalid.
    """
    path = Path(path)
    logger.info(f"Loading tickets from {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Cannot read ticket file {path}: {e}")
        raise TicketFileError(f"Cannot read ticket file: {e}") from e

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.error(f"Cannot decode ticket file {path}: {e}")
        raise TicketFileError(f"Invalid ticket file: {e}") from e

    return parse_tickets(data)


class TicketFeedClient:
    """
    Client for an HTTP ticket feed.

    Retrieves already-sanitized ticket data from the configured endpoint.
    """

    def __init__(self, config: SourceConfig):
        """
        Initialize the feed client.

        Args:
            config: Source configuration with endpoint and token.
        """
        self._config = config
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> "TicketFeedClient":
        """Context manager entry."""
        self._client = httpx.Client(timeout=self._config.request_timeout)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        if self._client:
            self._client.close()
            self._client = None

    def fetch_tickets(self) -> list[TicketRecord]:
        """
        Fetch all tickets from the feed.

        Returns:
            List of TicketRecord objects.

        Raises:
            TicketFeedError: If the request fails or the body is not JSON.
            DataSourceError: If a ticket payload is invalid.
        """
        if not self._client:
            raise RuntimeError("Client must be used within a context manager")

        headers = {"Accept": "application/json"}
        if self._config.tickets_feed_token:
            headers["Authorization"] = f"Bearer {self._config.tickets_feed_token}"

        logger.info(f"Fetching tickets from {self._config.tickets_feed_url}")

        try:
            response = self._client.get(self._config.tickets_feed_url, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error fetching tickets: {e}")
            if e.response.status_code == 401:
                raise TicketFeedError(
                    "Authentication failed (401): Check TICKETS_FEED_TOKEN in .env"
                ) from e
            raise TicketFeedError(f"HTTP error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Request error fetching tickets: {e}")
            raise TicketFeedError(f"Request failed: {str(e)}") from e
        except ValueError as e:
            logger.error(f"Ticket feed returned invalid JSON: {e}")
            raise TicketFeedError(f"Invalid JSON: {str(e)}") from e

        tickets = parse_tickets(data)
        logger.info(f"Successfully fetched {len(tickets)} tickets")
        return tickets


def fetch_tickets(config: SourceConfig) -> list[TicketRecord]:
    """
    Convenience function to fetch tickets from the HTTP feed.

    Args:
        config: Source configuration.

    Returns:
        List of TicketRecord objects.
    """
    with TicketFeedClient(config) as client:
        return client.fetch_tickets()
