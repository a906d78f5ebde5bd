import sys

from catalog_bridge.cli import main

sys.exit(main())
