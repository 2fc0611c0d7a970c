"""Minimal sanity checks against a live BOINC project."""

from __future__ import annotations

import asyncio
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from boinc_rpc import BoincWebRpcClient, load_config_from_env  # noqa: E402
from boinc_rpc.log import configure_logging  # noqa: E402
from boinc_rpc.web_rpc import BoincRpcError  # noqa: E402

# Optional lookups; skipped when unset.
SAMPLE_USER_ID = os.getenv("BOINC_SAMPLE_USER_ID")
SAMPLE_TEAM_NAME = os.getenv("BOINC_SAMPLE_TEAM_NAME")


async def main() -> None:
    config = load_config_from_env(log_format="plain")
    configure_logging(config)
    async with BoincWebRpcClient(config) as client:
        try:
            print("Server status:", await client.fetch_server_status())
            print("Project config:", await client.fetch_project_config())
            if SAMPLE_USER_ID:
                print("User:", await client.fetch_user(userid=int(SAMPLE_USER_ID)))
            if SAMPLE_TEAM_NAME:
                print("Teams:", await client.search_teams(SAMPLE_TEAM_NAME))
        except BoincRpcError as exc:
            print("RPC failed:", exc)


if __name__ == "__main__":
    asyncio.run(main())
