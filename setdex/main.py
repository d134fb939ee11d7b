"""``python -m setdex.main OUT_DIR [--gens N ...]``; see ``setdex.export``."""
import sys

from .export import main

if __name__ == "__main__":
    sys.exit(main())
