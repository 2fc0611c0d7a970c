"""
Async client for BOINC project web RPCs.

Exposes account, host, team and result-status endpoints of a volunteer
computing project as coroutine methods returning parsed XML reply trees.
See DESIGN.md for full details.
"""

from boinc_rpc.auth import hash_password
from boinc_rpc.config import BoincConfig, load_config_from_env
from boinc_rpc.web_rpc import BoincWebRpcClient

__all__ = ["BoincConfig", "BoincWebRpcClient", "hash_password", "load_config_from_env"]
