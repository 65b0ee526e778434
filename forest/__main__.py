import sys

from forest.cli.main import main

sys.exit(main())
