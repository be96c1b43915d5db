"""Lead Directory: narrow read access to leads/properties plus the interaction log."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from propertypulse.domain.models import Lead, LeadInteraction, Property

logger = logging.getLogger(__name__)


def lead_context(lead: Lead | None) -> dict:
    """Fields of a lead that question generation may use."""
    if lead is None:
        return {}
    return {
        "id": lead.id,
        "name": lead.name,
        "email": lead.email,
        "status": lead.status,
        "preferences": lead.preferences,
    }


def property_context(prop: Property | None) -> dict:
    if prop is None:
        return {}
    return {
        "id": prop.id,
        "name": prop.name,
        "address": prop.address,
        "bedrooms": prop.bedrooms,
        "rent": prop.rent,
        "description": prop.description,
    }


class LeadDirectory:
    """Resolves lead/property ids and appends advisory lead interactions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_lead(self, lead_id: int | None) -> Lead | None:
        if lead_id is None:
            return None
        return await self.db.get(Lead, lead_id)

    async def get_property(self, property_id: int | None) -> Property | None:
        if property_id is None:
            return None
        return await self.db.get(Property, property_id)

    async def log_interaction(
        self,
        lead_id: int,
        interaction_type: str,
        description: str,
        details: dict | None = None,
    ) -> LeadInteraction | None:
        """Append a lead interaction inside a savepoint.

        Advisory: a failure is logged and swallowed so the surrounding
        feedback write still commits.
        """
        try:
            async with self.db.begin_nested():
                interaction = LeadInteraction(
                    id=str(uuid.uuid4()),
                    lead_id=lead_id,
                    interaction_type=interaction_type,
                    description=description,
                    details=details or {},
                    created_at=datetime.now(timezone.utc),
                )
                self.db.add(interaction)
            return interaction
        except Exception as exc:
            logger.warning(
                "Failed to log %s interaction for lead %s: %s",
                interaction_type, lead_id, exc,
            )
            return None
