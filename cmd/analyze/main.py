"""Indicator analysis entrypoint."""

from __future__ import annotations

import sys
from typing import List, Optional

from trading_core import cli


def main(argv: Optional[List[str]] = None) -> int:
    return cli.main(list(sys.argv[1:] if argv is None else argv))


if __name__ == "__main__":
    sys.exit(main())
