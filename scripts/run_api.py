#!/usr/bin/env python
"""
Run the Ticket Enhancements API.

Checks the rule tables first so a bad CSV fails here rather than as HTTP 500s.

Usage:
    python scripts/run_api.py [--reload] [--skip-check]

Host, port, data directory and log level come from Settings
(API_HOST, API_PORT, TICKET_ENHANCEMENTS_DATA_DIR, LOG_LEVEL).
"""
import argparse
import sys
from pathlib import Path

import uvicorn

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from ticket_enhancements.config.settings import get_settings
from ticket_enhancements.rules.check_rules import check_rules


def main():
    parser = argparse.ArgumentParser(description="Run the Ticket Enhancements API")
    parser.add_argument('--reload', action='store_true', help="Restart on source changes")
    parser.add_argument('--skip-check', action='store_true', help="Start without checking the rule tables")
    args = parser.parse_args()

    settings = get_settings()

    if not args.skip_check:
        success, errors = check_rules(settings.data_dir)
        if not success:
            print(f"\n❌ Refusing to start: {len(errors)} rule table errors (use --skip-check to override)")
            sys.exit(1)

    print(f"Starting Ticket Enhancements API on http://{settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "ticket_enhancements.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=args.reload,
        reload_dirs=[str(src_path)] if args.reload else None,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
