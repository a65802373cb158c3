import sys

from rvgold.cli import main

sys.exit(main())
