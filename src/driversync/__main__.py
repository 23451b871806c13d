import sys

from driversync.cli import main

sys.exit(main())
