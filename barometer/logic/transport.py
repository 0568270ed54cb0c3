"""Transport sinks for delivering a confirmed submission.

The record is a flat mapping of field name -> string (or list of strings
for multi-choice groups), form-encoded on the wire. Retries are out of
scope: a sink reports success or failure once.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Protocol, Union
import logging

import httpx

from barometer.logic.answer_canonical import is_filled, ordered_choices
from barometer.logic.field_registry import FieldRegistry
from barometer.models.field_kind import FieldKind


logger = logging.getLogger(__name__)

RecordValue = Union[str, List[str]]


class TransportSink(Protocol):
    async def send(self, record: Mapping[str, RecordValue]) -> bool: ...


def build_transport_record(registry: FieldRegistry) -> Dict[str, RecordValue]:
    """Every non-empty field, meta and transport-reserved fields included.

    Transport-reserved values come from the schema default, never from the
    value store.
    """
    record: Dict[str, RecordValue] = {}
    for desc in registry:
        value = desc.initial_value() if desc.transport_reserved else registry.resolve(desc.name)
        if not is_filled(desc.kind, value):
            continue
        if desc.kind is FieldKind.MULTI_CHOICE_GROUP:
            record[desc.name] = ordered_choices(value, desc.options)  # type: ignore[arg-type]
        else:
            record[desc.name] = str(value)
    return record


class HttpTransportSink:
    """POSTs the record as form data to a form backend endpoint."""

    def __init__(self, url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.timeout = timeout
        self._client = client

    async def send(self, record: Mapping[str, RecordValue]) -> bool:
        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            resp = await client.post(self.url, data=dict(record), headers={"Accept": "application/json"})
        except httpx.HTTPError:
            logger.error("transport_send_failed url=%s", self.url, exc_info=True)
            return False
        finally:
            if self._client is None:
                await client.aclose()
        if not resp.is_success:
            logger.warning("transport_rejected url=%s status=%s", self.url, resp.status_code)
            return False
        logger.info("transport_delivered url=%s fields=%s", self.url, len(record))
        return True


class LoggingTransportSink:
    """Used when no endpoint is configured; records are only logged."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, RecordValue]] = []

    async def send(self, record: Mapping[str, RecordValue]) -> bool:
        self.sent.append(dict(record))
        logger.info("transport_logged fields=%s", sorted(record))
        return True


__all__ = [
    "RecordValue",
    "TransportSink",
    "build_transport_record",
    "HttpTransportSink",
    "LoggingTransportSink",
]
