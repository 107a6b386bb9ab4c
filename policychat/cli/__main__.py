"""Allow ``python -m policychat.cli``."""

from .main import main

raise SystemExit(main())
