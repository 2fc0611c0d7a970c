"""HTTP client wrappers for the BOINC project web RPCs."""

from .client import (
    BoincRpcError,
    BoincWebRpcClient,
    MalformedReplyError,
    ProjectUnreachableError,
    RemoteRpcError,
    raise_for_error,
)
from .replies import ErrorCode, RpcFailure, RpcSuccess, decode_reply
from .xml_tree import parse_tree

__all__ = [
    "BoincWebRpcClient",
    "BoincRpcError",
    "ProjectUnreachableError",
    "MalformedReplyError",
    "RemoteRpcError",
    "raise_for_error",
    "ErrorCode",
    "RpcSuccess",
    "RpcFailure",
    "decode_reply",
    "parse_tree",
]
