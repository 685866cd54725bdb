"""Run mailmigrate from a source checkout via `python main.py`."""

import sys
from pathlib import Path

src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from mailmigrate.cli import main  # noqa: E402

if __name__ == "__main__":
    main()
