#!/usr/bin/env python
import os
import sys
from pathlib import Path


def main() -> None:
    sync_root = Path(__file__).resolve().parent
    for path in (sync_root, sync_root.parent):
        if str(path) not in sys.path:
            sys.path.insert(0, str(path))
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "lifelog_sync.settings")

    from django.core.management import execute_from_command_line

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
