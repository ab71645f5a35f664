import sys

from sadfiles.cli import main

sys.exit(main())
