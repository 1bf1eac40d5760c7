import sys

from t212_ynab_sync.cli import main

sys.exit(main())
