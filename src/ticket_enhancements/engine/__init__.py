"""Engine subpackage - scope model, rule store and the two resolvers."""
from .resolution_engine import ResolutionEngine
from .rule_store import RuleStore
from .models import TicketContext, EffectiveMarkup, ResolvedHospitality, TicketResolution

__all__ = [
    'ResolutionEngine', 'RuleStore', 'TicketContext',
    'EffectiveMarkup', 'ResolvedHospitality', 'TicketResolution',
]
