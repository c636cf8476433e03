"""Find-or-create resolution for agents and offices referenced by listings."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Any, Optional

from .db import Database
from .models import SyncStats
from .normalize import clean_value

logger = logging.getLogger(__name__)


@dataclass
class EntityResolver:
    """Matches feed agents by email and offices by name.

    A match is counted as "updated" but no field is written: the feed is
    not treated as authoritative for agent or office details.
    """

    database: Database

    def resolve_agent(
        self, conn: sqlite3.Connection, raw_agent: Any, stats: SyncStats
    ) -> Optional[int]:
        if not isinstance(raw_agent, dict):
            return None

        email = clean_value(raw_agent.get("EmailAddress"))
        first_name = clean_value(raw_agent.get("FirstName"))
        if email is None and first_name is None:
            return None

        if email is not None:
            agent_id = self.database.find_agent_id_by_email(conn, email)
            if agent_id is not None:
                stats.agents_updated += 1
                return agent_id

        agent_id = self.database.insert_agent(
            conn,
            {
                "first_name": first_name,
                "last_name": clean_value(raw_agent.get("LastName")),
                "email": email,
                "license_num": clean_value(raw_agent.get("LicenseNum")),
                "phone": clean_value(raw_agent.get("OfficeLineNumber")),
                "photo_url": clean_value(raw_agent.get("PictureUrl")),
            },
        )
        stats.agents_created += 1
        logger.debug("Created agent %s (%s)", agent_id, email or first_name)
        return agent_id

    def resolve_office(
        self, conn: sqlite3.Connection, raw_office: Any, stats: SyncStats
    ) -> Optional[int]:
        if not isinstance(raw_office, dict):
            return None

        name = clean_value(raw_office.get("OfficeName"))
        if name is None:
            return None

        office_id = self.database.find_office_id_by_name(conn, name)
        if office_id is not None:
            stats.offices_updated += 1
            return office_id

        office_id = self.database.insert_office(
            conn,
            {
                "name": name,
                "brokerage_name": clean_value(raw_office.get("BrokerageName")),
                "phone": clean_value(raw_office.get("BrokerPhone")),
                "email": clean_value(raw_office.get("BrokerEmail")),
                "street_address": clean_value(raw_office.get("StreetAddress")),
                "city": clean_value(raw_office.get("City")),
                "state": clean_value(raw_office.get("State")),
                "zip": clean_value(raw_office.get("Zip")),
            },
        )
        stats.offices_created += 1
        logger.debug("Created office %s (%s)", office_id, name)
        return office_id
