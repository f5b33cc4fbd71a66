#!/usr/bin/env python
"""
Check pipeline - validates the rule tables and runs the test suite.

Usage:
    python scripts/check_all.py [DATA_DIR]
"""
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from ticket_enhancements.config.settings import get_settings
from ticket_enhancements.rules.check_rules import check_rules


def main():
    data_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else get_settings().data_dir

    print("=" * 60)
    print("TICKET ENHANCEMENTS CHECK PIPELINE")
    print("=" * 60)
    print()
    
    print("[1/2] Checking rule tables...")
    success, errors = check_rules(data_dir, verbose=True)
    
    if not success:
        print(f"\n❌ CHECK FAILED ({len(errors)} errors)")
        sys.exit(1)
    
    print()
    print("[2/2] Running tests...")
    
    import subprocess
    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests', '-q', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )
    
    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)
    
    print()
    print("=" * 60)
    print("✅ CHECK COMPLETE")
    print("=" * 60)


if __name__ == "__main__":
    main()
