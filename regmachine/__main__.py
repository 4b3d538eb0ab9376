"""Allow ``python -m regmachine``."""

from regmachine.main import main

raise SystemExit(main())
