#!/usr/bin/env python3
import logging
import os
import sys
from sideloader import create_app, ensure_root, BIND, PORT, LOG_LEVEL

def _resolve_library_root() -> str:
    if len(sys.argv) >= 2:
        return os.path.abspath(sys.argv[1])
    return os.path.abspath(os.environ.get("LIBRARY_ROOT", os.path.expanduser("~/Games/sideload")))

if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    library_root = _resolve_library_root()
    ensure_root(library_root)
    app = create_app(library_root)
    app.run(host=BIND, port=PORT, debug=False)
