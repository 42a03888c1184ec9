import sys

from bandpulse.cli import main

sys.exit(main())
