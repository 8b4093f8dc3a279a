"""
Print an access token for a wallet, signed with JWT_SECRET_KEY.

The wallet-connect front end normally mints these after verifying a wallet
signature; this script is for admin tooling and local runs.

Usage:
  python -m tuition_ledger.scripts.issue_token 0xABC...
  python -m tuition_ledger.scripts.issue_token 0xABC... --minutes 120
"""

import argparse
import sys

from tuition_ledger.auth.security import create_access_token
from tuition_ledger.core.exceptions import ServiceError


def main() -> int:
    parser = argparse.ArgumentParser(description="Issue a ledger access token for a wallet")
    parser.add_argument("wallet", help="Wallet address (0x + 40 hex)")
    parser.add_argument("--minutes", type=int, default=None, help="Token lifetime in minutes")
    args = parser.parse_args()

    try:
        token = create_access_token(args.wallet, expires_minutes=args.minutes)
    except ServiceError as e:
        print(e.message, file=sys.stderr)
        return 1
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
