import sys

from school_portal.cli import main

sys.exit(main())
