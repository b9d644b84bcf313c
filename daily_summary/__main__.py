import sys

from daily_summary.cli import main

sys.exit(main())
