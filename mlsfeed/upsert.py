"""Create-or-update of a single feed listing and its photos and open houses."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .db import Database, utc_timestamp
from .feed import as_list
from .models import OpenHouseRecord, PhotoRecord, RawRecord, SyncStats, UpsertResult
from .normalize import clean_value, parse_integer, parse_number
from .resolver import EntityResolver

logger = logging.getLogger(__name__)


class InvalidListingError(ValueError):
    """A feed record that cannot be keyed to a listing."""


def mls_id_of(record: RawRecord) -> Optional[str]:
    return clean_value(_section(record, "ListingDetails").get("MlsId"))


def build_listing_fields(record: RawRecord) -> Dict[str, Any]:
    """Project a raw feed record onto listing columns."""
    location = _section(record, "Location")
    details = _section(record, "ListingDetails")
    basics = _section(record, "BasicDetails")
    pets = _section(_section(record, "RentalDetails"), "PetsAllowed")

    no_pets = clean_value(pets.get("NoPets"))

    return {
        "mls_id": clean_value(details.get("MlsId")),
        "internal_mls_id": clean_value(details.get("InternalMlsId")),
        "mls_board": clean_value(details.get("MlsBoard")),
        "street_address": clean_value(location.get("StreetAddress")),
        "unit_number": clean_value(location.get("UnitNumber")),
        "city": clean_value(location.get("City")),
        "state": clean_value(location.get("State")),
        "zip": clean_value(location.get("Zip")),
        "latitude": parse_number(location.get("Lat")),
        "longitude": parse_number(location.get("Long")),
        "status": clean_value(details.get("Status")),
        "price": parse_number(details.get("Price")),
        "listing_url": clean_value(details.get("ListingUrl")),
        "virtual_tour_url": clean_value(details.get("VirtualTourUrl")),
        "property_type": clean_value(basics.get("PropertyType")),
        "description": clean_value(basics.get("Description")),
        "bedrooms": parse_integer(basics.get("Bedrooms")),
        "bathrooms": parse_number(basics.get("Bathrooms")),
        "full_bathrooms": parse_integer(basics.get("FullBathrooms")),
        "half_bathrooms": parse_integer(basics.get("HalfBathrooms")),
        "living_area": parse_integer(basics.get("LivingArea")),
        "lot_size": parse_number(basics.get("LotSize")),
        "year_built": parse_integer(basics.get("YearBuilt")),
        # Tri-state: only an explicit "no" on the NoPets flag sets it.
        "pets_allowed": True if no_pets is not None and no_pets.lower() == "no" else None,
    }


def extract_photos(record: RawRecord) -> List[PhotoRecord]:
    photos: List[PhotoRecord] = []
    for picture in _entries(record, "Pictures", "Picture"):
        url = clean_value(picture.get("PictureUrl"))
        if url is None:
            continue
        photos.append(
            PhotoRecord(url=url, caption=clean_value(picture.get("Caption")), sort_order=len(photos))
        )
    return photos


def extract_open_houses(record: RawRecord) -> List[OpenHouseRecord]:
    open_houses: List[OpenHouseRecord] = []
    for entry in _entries(record, "OpenHouses", "OpenHouse"):
        date = clean_value(entry.get("Date"))
        start_time = clean_value(entry.get("StartTime"))
        end_time = clean_value(entry.get("EndTime"))
        if not (date and start_time and end_time):
            logger.debug("Skipping incomplete open house entry %r", entry)
            continue
        open_houses.append(OpenHouseRecord(date=date, start_time=start_time, end_time=end_time))
    return open_houses


@dataclass
class ListingUpserter:
    """Writes one listing and fully replaces its dependent collections."""

    database: Database
    resolver: EntityResolver | None = field(default=None)

    def __post_init__(self) -> None:
        if self.resolver is None:
            self.resolver = EntityResolver(self.database)

    def upsert_listing(
        self, conn: sqlite3.Connection, record: RawRecord, stats: SyncStats
    ) -> UpsertResult:
        """Apply a record on ``conn``; the caller commits or rolls back."""
        mls_id = mls_id_of(record)
        if mls_id is None:
            raise InvalidListingError("Listing record has no ListingDetails/MlsId")

        agent_id = self.resolver.resolve_agent(conn, record.get("Agent"), stats)
        office_id = self.resolver.resolve_office(conn, record.get("Office"), stats)

        values = build_listing_fields(record)
        values.update(agent_id=agent_id, office_id=office_id, synced_at=utc_timestamp())

        listing_id = self.database.find_listing_id(conn, mls_id)
        if listing_id is not None:
            self.database.update_listing(conn, listing_id, values)
            self.database.delete_listing_children(conn, listing_id)
            action = "updated"
        else:
            listing_id = self.database.insert_listing(conn, values)
            action = "created"

        photos = extract_photos(record)
        if photos:
            self.database.insert_photos(conn, listing_id, photos)
            stats.photos_processed += len(photos)

        open_houses = extract_open_houses(record)
        if open_houses:
            self.database.insert_open_houses(conn, listing_id, open_houses)
            stats.open_houses_processed += len(open_houses)

        logger.debug(
            "Listing %s %s (%d photos, %d open houses)",
            mls_id,
            action,
            len(photos),
            len(open_houses),
        )
        return UpsertResult(action=action, mls_id=mls_id)


def _section(record: Any, name: str) -> Dict[str, Any]:
    if not isinstance(record, dict):
        return {}
    value = record.get(name)
    return value if isinstance(value, dict) else {}


def _entries(record: RawRecord, container: str, item: str) -> List[Dict[str, Any]]:
    return [entry for entry in as_list(_section(record, container).get(item)) if isinstance(entry, dict)]
