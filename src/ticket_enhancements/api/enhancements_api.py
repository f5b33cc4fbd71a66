"""
Enhancements API - public read endpoints for ticket markups and hospitality.
"""
from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from typing import Optional

from ..config.settings import get_settings
from ..engine import ResolutionEngine, TicketContext
from ..errors import InvalidContextError
from .state import get_engine

router = APIRouter(tags=["ticket-enhancements"])


class ResolveMarkupRequest(BaseModel):
    """Request model for resolving a single ticket's markup."""
    sport_type: Optional[str] = None
    tournament_id: Optional[str] = None
    team_id: Optional[str] = None
    event_id: Optional[str] = None
    ticket_id: Optional[str] = None


def parse_ticket_ids(ticket_ids: Optional[str]) -> list[str]:
    """Split a comma-separated ticket id list, dropping empty entries."""
    ids = [t.strip() for t in (ticket_ids or '').split(',') if t.strip()]
    if not ids:
        raise InvalidContextError("ticket_ids query parameter is required", {"ticket_ids": ticket_ids})
    return ids


def require_sport_type(sport_type: Optional[str]) -> str:
    if not sport_type or not sport_type.strip():
        raise InvalidContextError("sport_type query parameter is required", {"missing": ["sport_type"]})
    return sport_type.strip()


def cacheable(response: Response):
    """Mark a public read response as cacheable by the browser/CDN."""
    response.headers["Cache-Control"] = f"public, max-age={get_settings().cache_max_age}"


# Endpoints

@router.get("/events/{event_id}/effective-markups")
async def get_effective_markups(
    event_id: str,
    response: Response,
    sport_type: Optional[str] = None,
    tournament_id: Optional[str] = None,
    team_id: Optional[str] = None,
    ticket_ids: Optional[str] = None,
    engine: ResolutionEngine = Depends(get_engine),
):
    """Effective markup per ticket (null where none applies)."""
    markups = engine.resolve_markups(
        event_id=event_id,
        ticket_ids=parse_ticket_ids(ticket_ids),
        sport_type=require_sport_type(sport_type),
        tournament_id=tournament_id,
        team_id=team_id,
    )
    cacheable(response)
    return {
        "success": True,
        "data": {
            "event_id": event_id,
            "markups": {
                ticket_id: markup.to_dict() if markup else None
                for ticket_id, markup in markups.items()
            },
        },
    }


@router.get("/events/{event_id}/effective-hospitalities")
async def get_effective_hospitalities(
    event_id: str,
    response: Response,
    sport_type: Optional[str] = None,
    tournament_id: Optional[str] = None,
    team_id: Optional[str] = None,
    ticket_ids: Optional[str] = None,
    engine: ResolutionEngine = Depends(get_engine),
):
    """Union of hospitality entitlements per ticket (empty list where none apply)."""
    hospitalities = engine.resolve_hospitalities_for_tickets(
        event_id=event_id,
        ticket_ids=parse_ticket_ids(ticket_ids),
        sport_type=require_sport_type(sport_type),
        tournament_id=tournament_id,
        team_id=team_id,
    )
    cacheable(response)
    return {
        "success": True,
        "data": {
            "hospitalities": {
                ticket_id: [h.to_dict() for h in items]
                for ticket_id, items in hospitalities.items()
            },
        },
    }


@router.get("/tickets/{ticket_id}/markup")
async def get_ticket_markup(ticket_id: str, response: Response, engine: ResolutionEngine = Depends(get_engine)):
    """Legacy per-ticket markup, kept for older clients."""
    cacheable(response)
    return {"success": True, "data": engine.store.legacy_markup_by_ticket(ticket_id)}


@router.get("/events/{event_id}/hospitalities")
async def get_event_hospitalities(event_id: str, response: Response, engine: ResolutionEngine = Depends(get_engine)):
    """Legacy ticket → hospitality links of an event, kept for older clients."""
    cacheable(response)
    return {"success": True, "data": engine.store.legacy_hospitalities_by_event(event_id)}


@router.get("/hospitalities")
async def get_active_hospitalities(response: Response, engine: ResolutionEngine = Depends(get_engine)):
    """All active hospitality services."""
    cacheable(response)
    return {"success": True, "data": engine.store.active_hospitalities()}


@router.post("/markup-rules/resolve")
async def resolve_markup(request: ResolveMarkupRequest, engine: ResolutionEngine = Depends(get_engine)):
    """Resolve one ticket's markup and explain which level it came from."""
    context = TicketContext(
        sport_type=request.sport_type,
        event_id=request.event_id,
        ticket_id=request.ticket_id,
        tournament_id=request.tournament_id,
        team_id=request.team_id,
    )
    markup = engine.resolve_markup(context)
    return {
        "success": True,
        "data": markup.to_dict() if markup else None,
        "trace": [t.__dict__ for t in markup.trace] if markup else [],
        "message": (
            f"Markup resolved at '{markup.level}' level (source: {markup.source})"
            if markup else "No markup rule applies to this ticket"
        ),
    }
