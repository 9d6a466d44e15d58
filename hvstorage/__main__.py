import sys

from hvstorage.cli.main import main

sys.exit(main())
