"""
Markup resolution: legacy override, then most specific level wins.
"""
import pytest

from conftest import make_store, markup_rule

from ticket_enhancements.engine import TicketContext
from ticket_enhancements.engine.markup_resolver import MarkupResolver
from ticket_enhancements.errors import InvalidContextError, RuleIntegrityError

SOCCER = {'sport_type': 'soccer'}
PL = {**SOCCER, 'tournament_id': 'pl-2026'}
ARS = {**PL, 'team_id': 'ars'}
EVENT = {**ARS, 'event_id': 'ev-1'}
TICKET = {**EVENT, 'ticket_id': 'tk-1'}


def legacy_row(id=1, event_id='ev-1', ticket_id='tk-1', markup_type='fixed',
               markup_price_usd='20.00', markup_percentage='', base='180.00', final='200.00'):
    return {
        'id': str(id), 'event_id': event_id, 'ticket_id': ticket_id,
        'markup_price_usd': markup_price_usd, 'markup_type': markup_type,
        'markup_percentage': markup_percentage, 'base_price_usd': base, 'final_price_usd': final,
    }


def resolve(store, context):
    return MarkupResolver(store).resolve_markup(context)


def test_no_rules_resolves_to_none(context):
    assert resolve(make_store(), context) is None


def test_ticket_rule_beats_sport_rule(context):
    """A ticket-level rule overrides a sport-wide one."""
    store = make_store(markup_rules=[
        markup_rule(1, 'fixed', '50', **SOCCER),
        markup_rule(2, 'fixed', '10', **TICKET),
    ])
    markup = resolve(store, context)
    assert markup.level == 'ticket'
    assert markup.markup_amount == 10.0
    assert markup.rule_id == 2
    assert markup.source == 'markup_rules'


@pytest.mark.parametrize("scope,expected_level", [
    (SOCCER, 'sport'),
    (PL, 'tournament'),
    (ARS, 'team'),
    (EVENT, 'event'),
    (TICKET, 'ticket'),
])
def test_each_level_resolves_on_its_own(context, scope, expected_level):
    store = make_store(markup_rules=[markup_rule(7, 'fixed', '15', **scope)])
    markup = resolve(store, context)
    assert markup is not None, f"Rule at {expected_level} level should apply"
    assert markup.level == expected_level


def test_most_specific_of_all_levels_wins(context):
    store = make_store(markup_rules=[
        markup_rule(1, 'fixed', '50', **SOCCER),
        markup_rule(2, 'percentage', '8', **PL),
        markup_rule(3, 'fixed', '35', **ARS),
        markup_rule(4, 'percentage', '12.5', **EVENT),
    ])
    markup = resolve(store, context)
    assert (markup.level, markup.markup_type, markup.markup_amount) == ('event', 'percentage', 12.5)
    assert markup.markup_percentage == 12.5


def test_matched_rule_type_governs(context):
    """A fixed ticket rule wins over a percentage event rule; no blending."""
    store = make_store(markup_rules=[
        markup_rule(1, 'percentage', '12.5', **EVENT),
        markup_rule(2, 'fixed', '10', **TICKET),
    ])
    markup = resolve(store, context)
    assert markup.markup_type == 'fixed'
    assert markup.markup_percentage is None


def test_rules_for_other_scopes_do_not_match(context):
    store = make_store(markup_rules=[
        markup_rule(1, 'fixed', '50', sport_type='tennis'),
        markup_rule(2, 'fixed', '10', **{**TICKET, 'ticket_id': 'tk-2'}),
        markup_rule(3, 'fixed', '30', **{**EVENT, 'team_id': 'che'}),
        markup_rule(4, 'fixed', '40', **{**PL, 'tournament_id': 'fa-cup'}),
    ])
    assert resolve(store, context) is None


def test_event_rule_without_team_matches_team_ticket(context):
    """Event rows may omit team_id, since team only exists for team sports."""
    store = make_store(markup_rules=[
        markup_rule(1, 'fixed', '25', sport_type='soccer', tournament_id='pl-2026', event_id='ev-1'),
    ])
    markup = resolve(store, context)
    assert markup.level == 'event'


def test_non_team_sport_event_rule():
    context = TicketContext(sport_type='motorsport', tournament_id='f1-2026', event_id='monaco', ticket_id='t1')
    store = make_store(markup_rules=[
        markup_rule(1, 'percentage', '5', sport_type='motorsport'),
        markup_rule(2, 'fixed', '120', sport_type='motorsport', tournament_id='f1-2026', event_id='monaco'),
    ])
    markup = resolve(store, context)
    assert (markup.level, markup.markup_amount) == ('event', 120.0)


def test_context_without_tournament_skips_tournament_rules():
    context = TicketContext(sport_type='soccer', event_id='friendly-1', ticket_id='tk-9')
    store = make_store(markup_rules=[
        markup_rule(1, 'fixed', '50', **SOCCER),
        markup_rule(2, 'percentage', '8', **PL),
    ])
    markup = resolve(store, context)
    assert markup.level == 'sport'


def test_inactive_rules_are_ignored(context):
    store = make_store(markup_rules=[
        markup_rule(1, 'fixed', '50', **SOCCER),
        markup_rule(2, 'fixed', '10', is_active='0', **TICKET),
    ])
    markup = resolve(store, context)
    assert markup.level == 'sport'


def test_blank_is_active_counts_as_active(context):
    store = make_store(markup_rules=[markup_rule(1, 'fixed', '50', is_active='', **SOCCER)])
    assert resolve(store, context).markup_amount == 50.0


def test_legacy_markup_always_wins(context):
    store = make_store(
        markup_rules=[markup_rule(1, 'fixed', '10', **TICKET)],
        ticket_markups=[legacy_row()],
    )
    markup = resolve(store, context)
    assert markup.source == 'legacy'
    assert markup.level == 'ticket'
    assert markup.markup_amount == 20.0
    assert (markup.base_price_usd, markup.final_price_usd) == (180.0, 200.0)


def test_legacy_percentage_reports_percentage_as_amount(context):
    store = make_store(ticket_markups=[
        legacy_row(markup_type='percentage', markup_price_usd='45.00', markup_percentage='15.00',
                   base='300.00', final='345.00'),
    ])
    markup = resolve(store, context)
    assert markup.markup_type == 'percentage'
    assert markup.markup_amount == 15.0
    assert markup.markup_price_usd == 45.0


def test_legacy_rows_for_other_events_are_ignored(context):
    store = make_store(ticket_markups=[legacy_row(event_id='ev-2')])
    assert resolve(store, context) is None


def test_duplicate_active_rules_at_one_level_raise(context):
    store = make_store(markup_rules=[
        markup_rule(1, 'fixed', '10', **EVENT),
        markup_rule(2, 'fixed', '12', **EVENT),
    ])
    with pytest.raises(RuleIntegrityError) as exc:
        resolve(store, context)
    assert exc.value.details['ids'] == ['1', '2']
    assert exc.value.details['level'] == 'event'


def test_duplicate_legacy_rows_raise(context):
    store = make_store(ticket_markups=[legacy_row(1), legacy_row(2)])
    with pytest.raises(RuleIntegrityError):
        resolve(store, context)


@pytest.mark.parametrize("missing", ['sport_type', 'event_id', 'ticket_id'])
def test_incomplete_context_is_rejected(missing):
    values = {'sport_type': 'soccer', 'event_id': 'ev-1', 'ticket_id': 'tk-1', missing: ''}
    with pytest.raises(InvalidContextError):
        resolve(make_store(), TicketContext(**values))


def test_resolution_is_repeatable(context):
    store = make_store(markup_rules=[markup_rule(1, 'fixed', '50', **SOCCER), markup_rule(2, 'percentage', '8', **PL)])
    resolver = MarkupResolver(store)
    assert resolver.resolve_markup(context) == resolver.resolve_markup(context)


def test_trace_records_each_probed_level(context):
    store = make_store(markup_rules=[markup_rule(1, 'fixed', '50', **SOCCER)])
    markup = resolve(store, context)
    text = markup.get_trace_text()
    assert "No legacy per-ticket markup" in text
    assert "No rule at ticket level" in text
    assert "Matched rule at sport level" in text


def test_rule_markup_dict_shape(context):
    store = make_store(markup_rules=[markup_rule(1, 'fixed', '50', sport_name='Soccer', **SOCCER)])
    data = resolve(store, context).to_dict()
    assert data['sport_name'] == 'Soccer'
    assert 'trace' not in data
    assert 'base_price_usd' not in data


def test_legacy_markup_dict_shape(context):
    data = resolve(make_store(ticket_markups=[legacy_row()]), context).to_dict()
    assert data['source'] == 'legacy'
    assert data['final_price_usd'] == 200.0
    assert 'sport_name' not in data


def test_team_event_rule_beats_team_less_event_rule(context):
    """An event rule naming the team wins over one without a team."""
    store = make_store(markup_rules=[
        markup_rule(1, 'fixed', '25', sport_type='soccer', tournament_id='pl-2026', event_id='ev-1'),
        markup_rule(2, 'fixed', '30', **EVENT),
    ])
    markup = resolve(store, context)
    assert (markup.level, markup.rule_id, markup.markup_amount) == ('event', 2, 30.0)


def test_team_less_event_rule_applies_to_other_teams(context):
    store = make_store(markup_rules=[
        markup_rule(1, 'fixed', '25', sport_type='soccer', tournament_id='pl-2026', event_id='ev-1'),
        markup_rule(2, 'fixed', '30', **{**EVENT, 'team_id': 'che'}),
    ])
    assert resolve(store, context).rule_id == 1


def test_ids_are_matched_after_stripping_whitespace():
    """Padded ids still find the legacy row that takes precedence."""
    context = TicketContext(sport_type='soccer', event_id=' ev-1', ticket_id='tk-1 ')
    store = make_store(
        markup_rules=[markup_rule(1, 'fixed', '50', **SOCCER)],
        ticket_markups=[legacy_row()],
    )
    markup = resolve(store, context)
    assert markup.source == 'legacy'
