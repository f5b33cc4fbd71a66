#!/usr/bin/env python
"""
Run the Streamlit rule inspector.

Usage:
    python scripts/run_app.py [DATA_DIR]

DATA_DIR overrides TICKET_ENHANCEMENTS_DATA_DIR for the inspector; the port
comes from Settings (UI_PORT).
"""
import os
import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / 'src'))

from ticket_enhancements.config.settings import get_settings


def main():
    env = os.environ.copy()
    env['PYTHONPATH'] = os.pathsep.join(filter(None, [str(project_root / 'src'), env.get('PYTHONPATH')]))
    if len(sys.argv) > 1:
        data_dir = Path(sys.argv[1]).resolve()
        if not data_dir.is_dir():
            print(f"ERROR: rule table directory not found: {data_dir}")
            sys.exit(1)
        env['TICKET_ENHANCEMENTS_DATA_DIR'] = str(data_dir)

    ui_path = project_root / 'src' / 'ticket_enhancements' / 'ui' / 'app_streamlit.py'
    cmd = [
        sys.executable, '-m', 'streamlit', 'run', str(ui_path),
        '--server.port', str(get_settings().ui_port),
    ]
    print(f"Starting Streamlit: {' '.join(cmd)}")

    try:
        subprocess.run(cmd, cwd=str(project_root), env=env)
    except KeyboardInterrupt:
        print("\nInspector stopped.")


if __name__ == "__main__":
    main()
