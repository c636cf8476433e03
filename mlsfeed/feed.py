"""Feed retrieval and XML parsing for listing syndication feeds."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import requests
from lxml import etree

from .models import RawRecord

logger = logging.getLogger(__name__)

USER_AGENT = "mlsfeed/1.0 (+listing feed sync)"
ROOT_TAG = "Listings"

_XML_PARSER = etree.XMLParser(
    resolve_entities=False,
    no_network=True,
    remove_comments=True,
    remove_pis=True,
)


class FeedError(Exception):
    """Base class for pipeline-fatal feed failures."""


class FeedFetchError(FeedError):
    pass


class FeedParseError(FeedError):
    pass


def fetch_feed(
    url: str,
    timeout: int = 60,
    session: requests.Session | None = None,
) -> bytes:
    """Download the raw feed payload."""
    session = session or requests.Session()
    session.headers.update({
        "User-Agent": USER_AGENT,
        "Accept": "application/xml,text/xml;q=0.9,*/*;q=0.8",
    })
    logger.debug("Fetching feed %s", url)
    try:
        response = session.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else "?"
        reason = exc.response.reason if exc.response is not None else str(exc)
        raise FeedFetchError(f"Failed to fetch feed: {status} {reason}") from exc
    except requests.RequestException as exc:
        raise FeedFetchError(f"Failed to fetch feed: {exc}") from exc

    logger.info("Fetched %d bytes from %s", len(response.content), url)
    return response.content


def parse_feed(content: str | bytes) -> List[RawRecord]:
    """Turn a feed document into an ordered list of raw listing records."""
    if not content or not content.strip():
        raise FeedParseError("Feed document is empty")

    if isinstance(content, str):
        # lxml refuses str input carrying an encoding declaration.
        content = content.encode("utf-8")

    try:
        root = etree.fromstring(content, parser=_XML_PARSER)
    except etree.XMLSyntaxError as exc:
        raise FeedParseError(f"Feed document could not be parsed: {exc}") from exc

    if _local_name(root) != ROOT_TAG:
        raise FeedParseError(f"Feed document has no <{ROOT_TAG}> root element")

    document = _element_to_value(root)
    if not isinstance(document, dict):
        return []

    records = [item for item in as_list(document.get("Listing")) if isinstance(item, dict)]
    for record in records:
        _normalize_collection(record, "Pictures", "Picture")
        _normalize_collection(record, "OpenHouses", "OpenHouse")
    logger.debug("Parsed %d listing records", len(records))
    return records


def as_list(value: Any) -> List[Any]:
    """Read a repeatable element as a sequence regardless of how often it appeared."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def _normalize_collection(record: RawRecord, container: str, item: str) -> None:
    wrapper = record.get(container)
    if not isinstance(wrapper, dict):
        record[container] = {item: []}
        return
    wrapper[item] = [entry for entry in as_list(wrapper.get(item)) if isinstance(entry, dict)]


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _element_to_value(element: etree._Element) -> Any:
    children = list(element)
    if not children:
        return "".join(element.itertext())

    value: Dict[str, Any] = {}
    for child in children:
        converted = _element_to_value(child)
        name = _local_name(child)
        existing = value.get(name)
        if existing is None:
            value[name] = converted
        elif isinstance(existing, list):
            existing.append(converted)
        else:
            value[name] = [existing, converted]
    return value
