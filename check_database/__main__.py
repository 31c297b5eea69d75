import sys

from check_database.cli import main

sys.exit(main())
