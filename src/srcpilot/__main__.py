import sys

from srcpilot.main import main

sys.exit(main())
