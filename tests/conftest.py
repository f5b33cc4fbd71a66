import os
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from ticket_enhancements.config.settings import Settings, get_package_data_dir
from ticket_enhancements.engine import RuleStore, TicketContext


def markup_rule(id, markup_type='fixed', markup_amount='0', is_active='1', **scope):
    """A markup_rules row; level is derived by the caller's scope kwargs."""
    row = {'id': str(id), 'markup_type': markup_type, 'markup_amount': str(markup_amount), 'is_active': is_active}
    row.update({k: v for k, v in scope.items() if v is not None})
    return row


def assignment(id, hospitality_id, is_active='1', **scope):
    row = {'id': str(id), 'hospitality_id': str(hospitality_id), 'is_active': is_active}
    row.update({k: v for k, v in scope.items() if v is not None})
    return row


def item(id, name, sort_order=0, is_active='1', description=None, price_usd='25.00'):
    return {
        'id': str(id), 'name': name, 'description': description or f"{name} description",
        'sort_order': str(sort_order), 'is_active': is_active, 'price_usd': price_usd,
    }


def make_store(markup_rules=(), hospitalities=(), hospitality_assignments=(),
               ticket_markups=(), ticket_hospitalities=(), currencies=()):
    """Build a RuleStore from lists of row dicts."""
    def frame(rows):
        return pd.DataFrame(list(rows)) if rows else None

    return RuleStore(
        markup_rules=frame(markup_rules),
        hospitalities=frame(hospitalities),
        hospitality_assignments=frame(hospitality_assignments),
        ticket_markups=frame(ticket_markups),
        ticket_hospitalities=frame(ticket_hospitalities),
        currencies=frame(currencies),
    )


@pytest.fixture
def context():
    """A Premier League ticket for a team sport."""
    return TicketContext(
        sport_type='soccer',
        tournament_id='pl-2026',
        team_id='ars',
        event_id='ev-1',
        ticket_id='tk-1',
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(
        project_root=tmp_path,
        data_dir=tmp_path,
        rates_api_url='https://rates.test/v1',
        rate_timeout_seconds=2.0,
        rate_cache_ttl_seconds=300.0,
    )


@pytest.fixture
def bundled_settings(tmp_path):
    """Settings pointing at the sample tables shipped with the package."""
    return Settings(project_root=tmp_path, data_dir=get_package_data_dir())
