import sys

from pomerge.cli import main

sys.exit(main())
