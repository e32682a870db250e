"""
Jobs 진입점

실행 방법:
    python -m jobs {portfolio,net-worth,all} [--date YYYY-MM-DD]
"""

import asyncio
import sys

from jobs.cli import build_parser, main

if __name__ == "__main__":
    args = build_parser().parse_args()
    sys.exit(asyncio.run(main(args.job, args.date)))
