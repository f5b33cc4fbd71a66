"""
Markup Resolver - strict override, most-specific-wins.

Resolution order:
1. Legacy ticket_markups row for (event_id, ticket_id), always wins
2. markup_rules at ticket level
3. markup_rules at event level
4. markup_rules at team level (team sports only)
5. markup_rules at tournament level
6. markup_rules at sport level
7. No markup (None), callers add zero
"""
import logging
from typing import Optional

import pandas as pd

from ..errors import RuleIntegrityError
from .models import (
    TicketContext, EffectiveMarkup, TraceStep,
    SOURCE_LEGACY, SOURCE_MARKUP_RULES, MARKUP_PERCENTAGE,
)
from .rule_store import (
    RuleStore, MARKUP_RULES, legacy_markup_record,
    parse_optional_float, parse_optional_int, parse_optional_str,
)
from .scope import Level, MOST_SPECIFIC_FIRST

logger = logging.getLogger(__name__)


class MarkupResolver:
    """Resolves the single effective markup for a ticket."""

    def __init__(self, store: RuleStore):
        self.store = store

    def resolve_markup(self, context: TicketContext) -> Optional[EffectiveMarkup]:
        """
        Resolve the effective markup for a ticket.

        Raises InvalidContextError for a context without sport/event/ticket,
        and RuleIntegrityError when one scope holds more than one active row.
        """
        context.validate()
        trace = [TraceStep("Ticket Lookup", f"Resolving markup for ticket {context.ticket_id}", context.event_id)]

        legacy = self.store.legacy_markups(context.event_id, context.ticket_id)
        if len(legacy) > 1:
            raise RuleIntegrityError(
                f"{len(legacy)} legacy markups exist for ticket {context.ticket_id}",
                {"table": "ticket_markups", "event_id": context.event_id,
                 "ticket_id": context.ticket_id, "ids": legacy['id'].tolist()},
            )
        if not legacy.empty:
            trace.append(TraceStep("Legacy Markup", "Found legacy per-ticket markup", legacy.iloc[0]['id']))
            markup = self._format_legacy(legacy.iloc[0])
            markup.trace = trace
            return markup

        trace.append(TraceStep("Legacy Markup", "No legacy per-ticket markup"))

        for level in MOST_SPECIFIC_FIRST:
            matches = self.store.find_active_at_level(MARKUP_RULES, context, level)
            if len(matches) > 1:
                raise RuleIntegrityError(
                    f"{len(matches)} active markup rules match ticket {context.ticket_id} at {level.value} level",
                    {"table": MARKUP_RULES, "level": level.value, "ids": matches['id'].tolist()},
                )
            if not matches.empty:
                trace.append(TraceStep("Level Match", f"Matched rule at {level.value} level", matches.iloc[0]['id']))
                markup = self._format_rule(matches.iloc[0], level)
                markup.trace = trace
                return markup
            trace.append(TraceStep("Level Match", f"No rule at {level.value} level"))

        logger.debug("No markup applies to ticket %s of event %s", context.ticket_id, context.event_id)
        return None

    @staticmethod
    def _format_legacy(row: pd.Series) -> EffectiveMarkup:
        """Format a ticket_markups row into the standard result."""
        record = legacy_markup_record(row)
        is_percentage = record['markup_type'] == MARKUP_PERCENTAGE
        return EffectiveMarkup(
            level=Level.TICKET.value,
            source=SOURCE_LEGACY,
            markup_type=record['markup_type'],
            markup_amount=(record['markup_percentage'] or 0.0) if is_percentage else record['markup_price_usd'],
            markup_percentage=record['markup_percentage'],
            rule_id=record['id'],
            markup_price_usd=record['markup_price_usd'],
            base_price_usd=record['base_price_usd'],
            final_price_usd=record['final_price_usd'],
        )

    @staticmethod
    def _format_rule(row: pd.Series, level: Level) -> EffectiveMarkup:
        """Format a markup_rules row into the standard result."""
        amount = parse_optional_float(row['markup_amount']) or 0.0
        markup_type = parse_optional_str(row['markup_type']) or 'fixed'
        return EffectiveMarkup(
            level=level.value,
            source=SOURCE_MARKUP_RULES,
            markup_type=markup_type,
            markup_amount=amount,
            markup_percentage=amount if markup_type == MARKUP_PERCENTAGE else None,
            rule_id=parse_optional_int(row['id']),
            sport_name=parse_optional_str(row['sport_name']),
            tournament_name=parse_optional_str(row['tournament_name']),
            team_name=parse_optional_str(row['team_name']),
            event_name=parse_optional_str(row['event_name']),
            ticket_name=parse_optional_str(row['ticket_name']),
        )
