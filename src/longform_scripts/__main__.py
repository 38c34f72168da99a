import sys

from longform_scripts.cli import main

sys.exit(main())
