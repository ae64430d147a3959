"""Allow ``python -m docaugment.cli`` execution."""

import sys

from docaugment.cli.commands import main

sys.exit(main())
