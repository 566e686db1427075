import sys

from distprimes.cli import main

sys.exit(main())
