import sys

from athena_express.cli import main

sys.exit(main())
