import sys

from wallet_history.cli import main

sys.exit(main())
