import sys

from jet.cli import main

sys.exit(main())
