"""
Resolution Engine - batch entry point over both resolvers.

Callers (ticket listing, cart, checkout) pass an event, its ancestry and
the ticket ids on screen; every requested ticket comes back as a key, so
"no rule data" and "no overlay" look the same to them.
"""
import logging
from typing import Optional, Iterable

from ..config.settings import get_settings, Settings
from ..errors import InvalidContextError
from .hospitality_resolver import HospitalityResolver
from .markup_resolver import MarkupResolver
from .models import TicketContext, TicketResolution, EffectiveMarkup, ResolvedHospitality
from .rule_store import RuleStore

logger = logging.getLogger(__name__)


class ResolutionEngine:
    """
    Resolves markup and hospitality overlays for tickets of one event.

    Every resolution is a pure read of the rule store, so one engine
    instance can serve concurrent requests.
    """

    def __init__(self, store: Optional[RuleStore] = None, settings: Optional[Settings] = None):
        """Initialize engine with the rule store (loaded from settings.data_dir if not given)."""
        self.settings = settings or get_settings()
        self.store = store or RuleStore.from_directory(self.settings.data_dir)
        self.markup_resolver = MarkupResolver(self.store)
        self.hospitality_resolver = HospitalityResolver(self.store)

    def reload_data(self):
        """Reload all rule tables from disk."""
        self.store.reload()

    def resolve_markup(self, context: TicketContext) -> Optional[EffectiveMarkup]:
        return self.markup_resolver.resolve_markup(context)

    def resolve_hospitalities(self, context: TicketContext) -> list[ResolvedHospitality]:
        return self.hospitality_resolver.resolve_hospitalities(context)

    def resolve_for_tickets(
        self,
        event_id: str,
        ticket_ids: Iterable[str],
        sport_type: str,
        tournament_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> dict[str, TicketResolution]:
        """
        Resolve both overlays for each ticket.

        Returns a map with every requested ticket id as a key; tickets with
        nothing configured map to TicketResolution(None, []).
        """
        results = {}
        for context in self._contexts(event_id, ticket_ids, sport_type, tournament_id, team_id):
            results[context.ticket_id] = TicketResolution(
                markup=self.markup_resolver.resolve_markup(context),
                hospitalities=self.hospitality_resolver.resolve_hospitalities(context),
            )
        return results

    def resolve_markups(
        self,
        event_id: str,
        ticket_ids: Iterable[str],
        sport_type: str,
        tournament_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> dict[str, Optional[EffectiveMarkup]]:
        """Markup half of resolve_for_tickets."""
        return {
            context.ticket_id: self.markup_resolver.resolve_markup(context)
            for context in self._contexts(event_id, ticket_ids, sport_type, tournament_id, team_id)
        }

    def resolve_hospitalities_for_tickets(
        self,
        event_id: str,
        ticket_ids: Iterable[str],
        sport_type: str,
        tournament_id: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> dict[str, list[ResolvedHospitality]]:
        """Hospitality half of resolve_for_tickets."""
        return {
            context.ticket_id: self.hospitality_resolver.resolve_hospitalities(context)
            for context in self._contexts(event_id, ticket_ids, sport_type, tournament_id, team_id)
        }

    @staticmethod
    def _contexts(event_id, ticket_ids, sport_type, tournament_id, team_id) -> list[TicketContext]:
        """Build one validated context per distinct ticket id, in request order."""
        if isinstance(ticket_ids, str):
            raise InvalidContextError("ticket_ids must be a list of ids", {"ticket_ids": ticket_ids})

        contexts = []
        seen = set()
        for ticket_id in ticket_ids:
            ticket_id = str(ticket_id).strip() if ticket_id is not None else ''
            if not ticket_id:
                raise InvalidContextError("ticket_ids must not contain blank ids", {"event_id": event_id})
            if ticket_id in seen:
                continue
            seen.add(ticket_id)
            contexts.append(TicketContext(
                sport_type=sport_type,
                event_id=event_id,
                ticket_id=ticket_id,
                tournament_id=tournament_id or None,
                team_id=team_id or None,
            ).validate())
        return contexts
