"""
Data models for the resolution engine.

Uses dataclasses for structured, type-safe data representation.
"""
from dataclasses import dataclass, field, asdict
from typing import Optional

from ..errors import InvalidContextError
from .scope import SCOPE_FIELDS

SOURCE_LEGACY = 'legacy'
SOURCE_MARKUP_RULES = 'markup_rules'
SOURCE_HOSPITALITY_ASSIGNMENTS = 'hospitality_assignments'

MARKUP_FIXED = 'fixed'
MARKUP_PERCENTAGE = 'percentage'
MARKUP_TYPES = (MARKUP_FIXED, MARKUP_PERCENTAGE)


@dataclass
class TraceStep:
    """A single step in the resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class TicketContext:
    """A ticket's identity and its ancestry."""
    sport_type: str
    event_id: str
    ticket_id: str
    tournament_id: Optional[str] = None
    team_id: Optional[str] = None

    def validate(self) -> 'TicketContext':
        """Reject contexts missing a required scope field."""
        missing = [
            name for name in ('sport_type', 'event_id', 'ticket_id')
            if getattr(self, name) is None or str(getattr(self, name)).strip() == ''
        ]
        if missing:
            raise InvalidContextError(
                f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required",
                {"missing": missing},
            )
        return self

    def scope(self) -> dict[str, Optional[str]]:
        """Scope tuple as a column → value mapping (blank → None)."""
        values = {}
        for name in SCOPE_FIELDS:
            value = getattr(self, name)
            values[name] = str(value).strip() if value is not None and str(value).strip() else None
        return values


@dataclass
class EffectiveMarkup:
    """
    The single markup that applies to a ticket.

    Tagged by source: 'legacy' rows carry the base/final USD prices they were
    configured with, 'markup_rules' rows carry the scope display names.
    """
    level: str
    source: str
    markup_type: str
    markup_amount: float
    markup_percentage: Optional[float] = None
    rule_id: Optional[int] = None

    # markup_rules only
    sport_name: Optional[str] = None
    tournament_name: Optional[str] = None
    team_name: Optional[str] = None
    event_name: Optional[str] = None
    ticket_name: Optional[str] = None

    # legacy only
    markup_price_usd: Optional[float] = None
    base_price_usd: Optional[float] = None
    final_price_usd: Optional[float] = None

    trace: list[TraceStep] = field(default_factory=list, compare=False)

    @property
    def is_fixed(self) -> bool:
        return self.markup_type == MARKUP_FIXED

    def to_dict(self) -> dict:
        """JSON shape returned by the read API."""
        data = asdict(self)
        data.pop('trace')
        if self.source == SOURCE_LEGACY:
            for name in ('sport_name', 'tournament_name', 'team_name', 'event_name', 'ticket_name'):
                data.pop(name)
        else:
            for name in ('markup_price_usd', 'base_price_usd', 'final_price_usd'):
                data.pop(name)
        return data

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass
class ResolvedHospitality:
    """A hospitality entitlement visible to a ticket. Never priced."""
    hospitality_id: int
    hospitality_name: str
    hospitality_description: Optional[str]
    level: str
    source: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TicketResolution:
    """Both overlays for one ticket."""
    markup: Optional[EffectiveMarkup] = None
    hospitalities: list[ResolvedHospitality] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "markup": self.markup.to_dict() if self.markup else None,
            "hospitalities": [h.to_dict() for h in self.hospitalities],
        }
