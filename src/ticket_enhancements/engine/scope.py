"""
Scope Model - the five-level address shared by markup rules and
hospitality assignments.

    sport → tournament → team → event → ticket

A row's level is its most specific populated field. Level order is the
precedence order; no stored priority is ever consulted.
"""
from enum import Enum
from typing import Optional, Mapping

from ..errors import InvalidContextError


class Level(str, Enum):
    """Hierarchy level a rule or assignment is attached to."""
    SPORT = 'sport'
    TOURNAMENT = 'tournament'
    TEAM = 'team'
    EVENT = 'event'
    TICKET = 'ticket'


# Scope columns in hierarchy order (least → most specific)
SCOPE_FIELDS = ('sport_type', 'tournament_id', 'team_id', 'event_id', 'ticket_id')

# Display-name columns carried alongside the scope (admin UI only)
NAME_FIELDS = ('sport_name', 'tournament_name', 'team_name', 'event_name', 'ticket_name')

LEVEL_FIELD = {
    Level.SPORT: 'sport_type',
    Level.TOURNAMENT: 'tournament_id',
    Level.TEAM: 'team_id',
    Level.EVENT: 'event_id',
    Level.TICKET: 'ticket_id',
}

LEAST_SPECIFIC_FIRST = (Level.SPORT, Level.TOURNAMENT, Level.TEAM, Level.EVENT, Level.TICKET)
MOST_SPECIFIC_FIRST = tuple(reversed(LEAST_SPECIFIC_FIRST))

# Levels below which team_id may legitimately be absent (non-team sports)
TEAM_OPTIONAL_LEVELS = (Level.EVENT, Level.TICKET)


def specificity(level: Level | str) -> int:
    """Rank of a level: 0 for sport up to 4 for ticket."""
    return LEAST_SPECIFIC_FIRST.index(Level(level))


def _blank(value) -> bool:
    return value is None or str(value).strip() == ''


def determine_level(scope: Mapping[str, Optional[str]]) -> Level:
    """
    Determine the hierarchy level from the populated scope fields.

    Raises InvalidContextError if no identifier is set.
    """
    for level in MOST_SPECIFIC_FIRST:
        if not _blank(scope.get(LEVEL_FIELD[level])):
            return level
    raise InvalidContextError(
        "At least one hierarchy level identifier must be provided",
        {"fields": list(SCOPE_FIELDS)},
    )


def is_contiguous(scope: Mapping[str, Optional[str]]) -> bool:
    """
    Check that the populated fields form a contiguous prefix of the
    hierarchy. A missing team_id is allowed above event level.
    """
    level = determine_level(scope)
    for ancestor in LEAST_SPECIFIC_FIRST[:specificity(level)]:
        if not _blank(scope.get(LEVEL_FIELD[ancestor])):
            continue
        if ancestor == Level.TEAM and level in TEAM_OPTIONAL_LEVELS:
            continue
        return False
    return True
