"""
Hospitality Resolver - union of every entitlement visible from any ancestor
scope, plus the legacy per-ticket links.
"""
import logging

from ..errors import RuleIntegrityError
from .models import (
    TicketContext, ResolvedHospitality,
    SOURCE_LEGACY, SOURCE_HOSPITALITY_ASSIGNMENTS,
)
from .rule_store import RuleStore, parse_optional_int, parse_optional_str
from .scope import Level, MOST_SPECIFIC_FIRST

logger = logging.getLogger(__name__)


class HospitalityResolver:
    """
    Collects hospitality assignments from all five levels.

    Unlike markup nothing is overridden: a sport-wide amenity and a
    ticket-specific one are both returned. An item reachable from several
    levels appears once, tagged with the most specific level.
    """

    def __init__(self, store: RuleStore):
        self.store = store

    def resolve_hospitalities(self, context: TicketContext) -> list[ResolvedHospitality]:
        """Resolve all effective hospitality services for a ticket."""
        context.validate()
        resolved: dict[int, ResolvedHospitality] = {}

        # Most specific first, so the first hit for an item carries its level
        for level in MOST_SPECIFIC_FIRST:
            matches = self.store.assignments_at_level(context, level)
            duplicated = matches[matches.duplicated('hospitality_id', keep=False)]
            if not duplicated.empty:
                raise RuleIntegrityError(
                    f"Hospitality assigned more than once to ticket {context.ticket_id} at {level.value} level",
                    {"table": "hospitality_assignments", "level": level.value,
                     "ids": duplicated['id'].tolist()},
                )
            for _, row in matches.iterrows():
                self._add(resolved, row, level, SOURCE_HOSPITALITY_ASSIGNMENTS)

        for _, row in self.store.legacy_hospitalities(context.event_id, context.ticket_id).iterrows():
            self._add(resolved, row, Level.TICKET, SOURCE_LEGACY)

        logger.debug(
            "Resolved %d hospitalities for ticket %s of event %s",
            len(resolved), context.ticket_id, context.event_id,
        )
        return list(resolved.values())

    @staticmethod
    def _add(resolved: dict, row, level: Level, source: str):
        hospitality_id = parse_optional_int(row['hospitality_id'])
        if hospitality_id is None or hospitality_id in resolved:
            return
        resolved[hospitality_id] = ResolvedHospitality(
            hospitality_id=hospitality_id,
            hospitality_name=row['hospitality_name'],
            hospitality_description=parse_optional_str(row['hospitality_description']),
            level=level.value,
            source=source,
        )
