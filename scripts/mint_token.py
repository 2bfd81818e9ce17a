"""Print a bearer token signed with this process's ephemeral key.

Run with:
    python scripts/mint_token.py <user-uuid> [role ...]

Only useful against a server started in the SAME process (the key is
generated on import), e.g. from a TestClient session or a notebook.
Against a running server, mint tokens with the platform auth service.
"""

from __future__ import annotations

import sys
from uuid import UUID, uuid4

from coursetrack.services import token_service


def main(argv: list[str]) -> int:
    sub = argv[0] if argv else str(uuid4())
    try:
        UUID(sub)
    except ValueError:
        print(f"subject must be a UUID (got {sub!r})", file=sys.stderr)
        return 2
    roles = argv[1:] or ["student"]
    print(token_service.create_access_token(sub=sub, roles=roles))
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
