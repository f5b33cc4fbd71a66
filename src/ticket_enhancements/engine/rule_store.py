"""
Rule Store - read access to the markup and hospitality tables.

Each table is a flat CSV loaded into a DataFrame with every column as a
string; an empty cell means null. The hierarchy is never materialized as a
tree: every lookup is an exact match of a ticket context against the scope
columns at one level (see find_active_at_level).
"""
import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from .models import TicketContext
from .scope import (
    Level, SCOPE_FIELDS, NAME_FIELDS, LEVEL_FIELD, LEAST_SPECIFIC_FIRST,
    TEAM_OPTIONAL_LEVELS, specificity,
)

logger = logging.getLogger(__name__)

AUDIT_FIELDS = ['created_by', 'updated_by', 'created_at', 'updated_at']

MARKUP_RULES = 'markup_rules'
HOSPITALITIES = 'hospitalities'
HOSPITALITY_ASSIGNMENTS = 'hospitality_assignments'
TICKET_MARKUPS = 'ticket_markups'
TICKET_HOSPITALITIES = 'ticket_hospitalities'
CURRENCIES = 'currencies'

TABLE_COLUMNS = {
    MARKUP_RULES: [
        'id', *SCOPE_FIELDS, 'markup_type', 'markup_amount', *NAME_FIELDS,
        'level', 'is_active', *AUDIT_FIELDS,
    ],
    HOSPITALITIES: [
        'id', 'name', 'description', 'price_usd', 'is_active', 'sort_order', *AUDIT_FIELDS,
    ],
    HOSPITALITY_ASSIGNMENTS: [
        'id', 'hospitality_id', *SCOPE_FIELDS, *NAME_FIELDS,
        'level', 'is_active', *AUDIT_FIELDS,
    ],
    TICKET_MARKUPS: [
        'id', 'event_id', 'ticket_id', 'markup_price_usd', 'markup_type',
        'markup_percentage', 'base_price_usd', 'final_price_usd', *AUDIT_FIELDS,
    ],
    TICKET_HOSPITALITIES: [
        'id', 'event_id', 'ticket_id', 'hospitality_id', 'custom_price_usd',
        'created_by', 'created_at',
    ],
    CURRENCIES: [
        'id', 'code', 'name', 'symbol', 'is_active', 'is_default', 'sort_order',
    ],
}

# Tables that carry an is_active flag
ACTIVE_FLAG_TABLES = (MARKUP_RULES, HOSPITALITIES, HOSPITALITY_ASSIGNMENTS, CURRENCIES)


def parse_bool(value: str, default: bool = True) -> bool:
    """Parse a boolean from CSV string (blank → default)."""
    value = str(value).strip().lower()
    if value == '':
        return default
    return value in ('true', '1', 'yes', 'on')


def parse_optional_float(value) -> Optional[float]:
    """Parse optional float."""
    if value is None or str(value).strip() == '':
        return None
    return float(value)


def parse_optional_int(value) -> Optional[int]:
    """Parse optional integer (non-numeric ids are kept as None)."""
    if value is None or str(value).strip() == '':
        return None
    try:
        return int(float(value))
    except ValueError:
        return None


def parse_optional_str(value) -> Optional[str]:
    """Parse optional string (empty = None)."""
    if value is None or str(value).strip() == '':
        return None
    return str(value).strip()


def _key(value) -> str:
    """Lookup key for an id column (ids are stored stripped)."""
    return str(value).strip() if value is not None else ''


def normalize_table(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """Coerce a raw table to string columns, blank for null, with every expected column present."""
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]
    for col in columns:
        if col not in df.columns:
            df[col] = ''
    df = df.fillna('')
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    return df.reset_index(drop=True)


class RuleStore:
    """
    In-memory view of the rule tables.

    Build it from a directory of CSV files with from_directory(), or pass
    DataFrames directly. Only rows flagged active are ever returned by the
    lookup methods.
    """

    def __init__(
        self,
        markup_rules: Optional[pd.DataFrame] = None,
        hospitalities: Optional[pd.DataFrame] = None,
        hospitality_assignments: Optional[pd.DataFrame] = None,
        ticket_markups: Optional[pd.DataFrame] = None,
        ticket_hospitalities: Optional[pd.DataFrame] = None,
        currencies: Optional[pd.DataFrame] = None,
        data_dir: Optional[Path] = None,
    ):
        self.data_dir = data_dir
        self._tables = self._build_tables({
            MARKUP_RULES: markup_rules,
            HOSPITALITIES: hospitalities,
            HOSPITALITY_ASSIGNMENTS: hospitality_assignments,
            TICKET_MARKUPS: ticket_markups,
            TICKET_HOSPITALITIES: ticket_hospitalities,
            CURRENCIES: currencies,
        })

    @classmethod
    def from_directory(cls, data_dir: Path) -> 'RuleStore':
        """Load every table from <data_dir>/<table>.csv. Missing files load empty."""
        data_dir = Path(data_dir)
        return cls(data_dir=data_dir, **cls._read_directory(data_dir))

    @staticmethod
    def _read_directory(data_dir: Path) -> dict[str, pd.DataFrame]:
        frames = {}
        for table in TABLE_COLUMNS:
            path = data_dir / f'{table}.csv'
            if path.exists():
                frames[table] = pd.read_csv(path, dtype=str, keep_default_na=False)
            else:
                logger.warning("Rule table %s not found at %s, using an empty table", table, path)
                frames[table] = None
        return frames

    @staticmethod
    def _build_tables(frames: dict[str, Optional[pd.DataFrame]]) -> dict[str, pd.DataFrame]:
        tables = {}
        for table, columns in TABLE_COLUMNS.items():
            raw = frames.get(table)
            if raw is None:
                raw = pd.DataFrame(columns=columns)
            df = normalize_table(raw, columns)
            if table in ACTIVE_FLAG_TABLES:
                df['_active'] = df['is_active'].map(parse_bool).astype(bool)
            tables[table] = df
        return tables

    def reload(self):
        """Re-read all tables from the directory this store was loaded from."""
        if self.data_dir is None:
            return
        # Swap the whole mapping so concurrent readers never see a half-loaded store
        self._tables = self._build_tables(self._read_directory(self.data_dir))
        logger.info("Reloaded rule tables from %s", self.data_dir)

    def table(self, name: str) -> pd.DataFrame:
        """Raw normalized table (all rows, active or not)."""
        return self._tables[name]

    # ------------------------------------------------------------------
    # Shared level-matching primitive
    # ------------------------------------------------------------------

    def find_active_at_level(self, table: str, context: TicketContext, level: Level) -> pd.DataFrame:
        """
        Find all active rows of `table` whose scope exactly matches the
        context at `level`.

        Every field up to `level` must equal the context value and every
        deeper field must be null. At event and ticket level a row without
        a team_id stands in for the team row, since team only exists for
        team sports: it matches when the context has no team, or when no
        row names the context's team exactly.
        """
        level = Level(level)
        df = self._tables[table]
        scope = context.scope()

        # Tournament/team probes need the context to name that ancestor
        if level in (Level.TOURNAMENT, Level.TEAM) and scope[LEVEL_FIELD[level]] is None:
            return df.iloc[0:0]

        mask = df['_active'].copy()
        depth = specificity(level)
        for i, lvl in enumerate(LEAST_SPECIFIC_FIRST):
            col = LEVEL_FIELD[lvl]
            if i > depth:
                mask &= df[col] == ''
            elif lvl == Level.TEAM and level in TEAM_OPTIONAL_LEVELS:
                continue
            else:
                mask &= df[col] == (scope[col] or '')

        if level not in TEAM_OPTIONAL_LEVELS:
            return df[mask]

        team = scope['team_id'] or ''
        exact = df[mask & (df['team_id'] == team)]
        if not exact.empty or not team:
            return exact
        return df[mask & (df['team_id'] == '')]

    def assignments_at_level(self, context: TicketContext, level: Level) -> pd.DataFrame:
        """Active hospitality assignments at `level`, joined with their active item."""
        matches = self.find_active_at_level(HOSPITALITY_ASSIGNMENTS, context, level)
        return self._join_items(matches)

    def _join_items(self, rows: pd.DataFrame) -> pd.DataFrame:
        items = self._tables[HOSPITALITIES]
        items = items[items['_active']][['id', 'name', 'description', 'sort_order']].rename(columns={
            'id': 'hospitality_id',
            'name': 'hospitality_name',
            'description': 'hospitality_description',
            'sort_order': 'hospitality_sort_order',
        })
        joined = rows.drop(columns=['_active'], errors='ignore').merge(items, on='hospitality_id', how='inner')
        joined['_sort'] = pd.to_numeric(joined['hospitality_sort_order'], errors='coerce').fillna(0)
        return joined.sort_values(['_sort', 'hospitality_name'], kind='stable').drop(columns=['_sort'])

    # ------------------------------------------------------------------
    # Legacy per-ticket tables
    # ------------------------------------------------------------------

    def legacy_markups(self, event_id: str, ticket_id: str) -> pd.DataFrame:
        """Legacy ticket_markups rows for one ticket."""
        df = self._tables[TICKET_MARKUPS]
        return df[(df['event_id'] == _key(event_id)) & (df['ticket_id'] == _key(ticket_id))]

    def legacy_hospitalities(self, event_id: str, ticket_id: str) -> pd.DataFrame:
        """Legacy ticket_hospitalities rows for one ticket, joined with active items."""
        df = self._tables[TICKET_HOSPITALITIES]
        rows = df[(df['event_id'] == _key(event_id)) & (df['ticket_id'] == _key(ticket_id))]
        return self._join_items(rows)

    def legacy_markup_by_ticket(self, ticket_id: str) -> Optional[dict]:
        """First legacy markup for a ticket id, regardless of event."""
        df = self._tables[TICKET_MARKUPS]
        match = df[df['ticket_id'] == _key(ticket_id)]
        if match.empty:
            return None
        return legacy_markup_record(match.iloc[0])

    def legacy_hospitalities_by_event(self, event_id: str) -> list[dict]:
        """All legacy ticket → hospitality links of an event (no prices)."""
        df = self._tables[TICKET_HOSPITALITIES]
        rows = self._join_items(df[df['event_id'] == _key(event_id)])
        rows = rows.sort_values('ticket_id', kind='stable')
        return [
            {
                "event_id": row['event_id'],
                "ticket_id": row['ticket_id'],
                "hospitality_id": parse_optional_int(row['hospitality_id']),
                "hospitality_name": row['hospitality_name'],
                "hospitality_description": parse_optional_str(row['hospitality_description']),
            }
            for _, row in rows.iterrows()
        ]

    # ------------------------------------------------------------------
    # Catalog lookups
    # ------------------------------------------------------------------

    def active_hospitalities(self) -> list[dict]:
        """Active hospitality items in display order."""
        items = self._tables[HOSPITALITIES]
        items = items[items['_active']].copy()
        items['_sort'] = pd.to_numeric(items['sort_order'], errors='coerce').fillna(0)
        items = items.sort_values(['_sort', 'name'], kind='stable')
        return [
            {
                "id": parse_optional_int(row['id']),
                "name": row['name'],
                "description": parse_optional_str(row['description']),
                "sort_order": parse_optional_int(row['sort_order']) or 0,
            }
            for _, row in items.iterrows()
        ]

    def active_currencies(self) -> list[dict]:
        """Active currencies in display order."""
        df = self._tables[CURRENCIES]
        df = df[df['_active']].copy()
        df['_sort'] = pd.to_numeric(df['sort_order'], errors='coerce').fillna(0)
        df = df.sort_values(['_sort', 'code'], kind='stable')
        return [
            {
                "id": parse_optional_int(row['id']),
                "code": row['code'].upper(),
                "name": row['name'],
                "symbol": row['symbol'],
                "is_default": parse_bool(row['is_default'], default=False),
                "sort_order": parse_optional_int(row['sort_order']) or 0,
            }
            for _, row in df.iterrows()
        ]

    def default_currency(self) -> Optional[dict]:
        """The default active currency, falling back to the first active one."""
        currencies = self.active_currencies()
        for currency in currencies:
            if currency['is_default']:
                return currency
        return currencies[0] if currencies else None

    def stats(self) -> dict:
        """Counts of active rows per level and of legacy rows."""
        stats = {}
        for table in (MARKUP_RULES, HOSPITALITY_ASSIGNMENTS):
            df = self._tables[table]
            active = df[df['_active']]
            stats[table] = {
                "total": int(len(df)),
                "active": int(len(active)),
                "by_level": {
                    lvl.value: int((active['level'] == lvl.value).sum()) for lvl in LEAST_SPECIFIC_FIRST
                },
            }
        stats[TICKET_MARKUPS] = {"total": int(len(self._tables[TICKET_MARKUPS]))}
        stats[TICKET_HOSPITALITIES] = {"total": int(len(self._tables[TICKET_HOSPITALITIES]))}
        stats[HOSPITALITIES] = {"active": int(self._tables[HOSPITALITIES]['_active'].sum())}
        return stats


def legacy_markup_record(row: pd.Series) -> dict:
    """Typed dict for a legacy ticket_markups row."""
    return {
        "id": parse_optional_int(row['id']),
        "event_id": row['event_id'],
        "ticket_id": row['ticket_id'],
        "markup_type": parse_optional_str(row['markup_type']) or 'fixed',
        "markup_price_usd": parse_optional_float(row['markup_price_usd']) or 0.0,
        "markup_percentage": parse_optional_float(row['markup_percentage']),
        "base_price_usd": parse_optional_float(row['base_price_usd']) or 0.0,
        "final_price_usd": parse_optional_float(row['final_price_usd']) or 0.0,
    }
