"""
Rule Checker - validates the markup and hospitality CSV tables.

Catches the configuration errors the resolvers would otherwise trip over at
request time: duplicate active scopes, gaps in the scope hierarchy, level
columns that disagree with the populated ids, unknown hospitality items.
"""
import sys
from pathlib import Path

import pandas as pd

from ..engine.models import MARKUP_TYPES, MARKUP_PERCENTAGE
from ..engine.rule_store import (
    RuleStore, MARKUP_RULES, HOSPITALITIES, HOSPITALITY_ASSIGNMENTS,
    TICKET_MARKUPS, TICKET_HOSPITALITIES, parse_optional_float,
)
from ..engine.scope import SCOPE_FIELDS, determine_level, is_contiguous
from ..errors import InvalidContextError


def validate_scope_row(row: pd.Series, line_num: int, table: str) -> list[str]:
    """Check the level column and the contiguous-prefix invariant of one row."""
    errors = []
    scope = {f: row[f] for f in SCOPE_FIELDS}
    try:
        level = determine_level(scope)
    except InvalidContextError:
        return [f"{table} line {line_num}: no scope identifier set"]

    if not is_contiguous(scope):
        errors.append(f"{table} line {line_num}: scope ids must form a contiguous prefix (sport → {level.value})")
    if row['level'] and row['level'] != level.value:
        errors.append(f"{table} line {line_num}: level '{row['level']}' does not match populated ids ({level.value})")
    return errors


def validate_markup_row(row: pd.Series, line_num: int) -> list[str]:
    """Validate markup type and amount of a markup_rules row."""
    errors = validate_scope_row(row, line_num, MARKUP_RULES)

    markup_type = row['markup_type'] or 'fixed'
    if markup_type not in MARKUP_TYPES:
        errors.append(f"{MARKUP_RULES} line {line_num}: invalid markup_type '{markup_type}', must be one of: {MARKUP_TYPES}")
        return errors

    try:
        amount = parse_optional_float(row['markup_amount'])
    except ValueError:
        errors.append(f"{MARKUP_RULES} line {line_num}: markup_amount must be numeric")
        return errors

    if amount is None or amount < 0:
        errors.append(f"{MARKUP_RULES} line {line_num}: markup_amount must be a non-negative number")
    elif markup_type == MARKUP_PERCENTAGE and amount > 100:
        errors.append(f"{MARKUP_RULES} line {line_num}: percentage markup must be between 0 and 100")
    return errors


def find_duplicates(df: pd.DataFrame, key: list[str], table: str) -> list[str]:
    """Report rows sharing the same key (line numbers are 1-indexed + header)."""
    errors = []
    dup = df[df.duplicated(key, keep=False)]
    for values, group in dup.groupby(key, sort=False):
        lines = ", ".join(str(i + 2) for i in group.index)
        errors.append(f"{table}: duplicate {'/'.join(key)} {values} on lines {lines}")
    return errors


def check_rules(data_dir: Path, verbose: bool = True) -> tuple[bool, list[str]]:
    """
    Validate every rule table in data_dir.

    Returns (success, errors).
    """
    store = RuleStore.from_directory(data_dir)
    all_errors = []

    rules = store.table(MARKUP_RULES)
    for idx, row in rules.iterrows():
        all_errors.extend(validate_markup_row(row, idx + 2))
    active_rules = rules[rules['_active']]
    all_errors.extend(find_duplicates(active_rules, list(SCOPE_FIELDS), MARKUP_RULES))

    assignments = store.table(HOSPITALITY_ASSIGNMENTS)
    known_items = set(store.table(HOSPITALITIES)['id'])
    for idx, row in assignments.iterrows():
        all_errors.extend(validate_scope_row(row, idx + 2, HOSPITALITY_ASSIGNMENTS))
        if row['hospitality_id'] not in known_items:
            all_errors.append(f"{HOSPITALITY_ASSIGNMENTS} line {idx + 2}: unknown hospitality_id '{row['hospitality_id']}'")
    active_assignments = assignments[assignments['_active']]
    all_errors.extend(find_duplicates(
        active_assignments, ['hospitality_id', *SCOPE_FIELDS], HOSPITALITY_ASSIGNMENTS
    ))

    legacy = store.table(TICKET_MARKUPS)
    all_errors.extend(find_duplicates(legacy, ['event_id', 'ticket_id'], TICKET_MARKUPS))
    for idx, row in legacy.iterrows():
        if (row['markup_type'] or 'fixed') not in MARKUP_TYPES:
            all_errors.append(f"{TICKET_MARKUPS} line {idx + 2}: invalid markup_type '{row['markup_type']}'")

    legacy_links = store.table(TICKET_HOSPITALITIES)
    all_errors.extend(find_duplicates(
        legacy_links, ['event_id', 'ticket_id', 'hospitality_id'], TICKET_HOSPITALITIES
    ))

    if verbose:
        if all_errors:
            print("Validation errors:")
            for err in all_errors:
                print(f"  ❌ {err}")
        else:
            print(f"✅ {len(active_rules)} active markup rules, "
                  f"{len(active_assignments)} active hospitality assignments")
            print(f"   Source: {data_dir}")

    return not all_errors, all_errors


def main():
    """CLI entry point."""
    from ..config.settings import get_settings

    data_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else get_settings().data_dir

    print("Checking rule tables...")
    success, errors = check_rules(data_dir)

    if not success:
        print(f"\n❌ Check failed with {len(errors)} errors")
        sys.exit(1)


if __name__ == "__main__":
    main()
