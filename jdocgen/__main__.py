"""Allow ``python -m jdocgen``."""

import sys

from jdocgen.main import main

if __name__ == "__main__":
    sys.exit(main())
