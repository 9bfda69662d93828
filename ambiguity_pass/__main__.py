import sys

from ambiguity_pass.cli import main

sys.exit(main())
