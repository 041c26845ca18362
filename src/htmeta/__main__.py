import sys

from htmeta.cli import main

sys.exit(main())
