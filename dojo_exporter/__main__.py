import sys

from dojo_exporter.cli import main

sys.exit(main())
