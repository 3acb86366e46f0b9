"""Allow ``python -m mediasplit``."""

from mediasplit.cli import main

raise SystemExit(main())
