"""Typed views over response trees: success records vs. error records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional, Union

from boinc_rpc.web_rpc.xml_tree import ResponseTree, TEXT_KEY

ERROR_TAG = "error"


class ErrorCode(IntEnum):
    """Error numbers documented by the BOINC web RPC service."""

    GENERIC = -1
    INVALID_XML = -112
    NOT_FOUND = -136
    NOT_UNIQUE = -137
    DB_UNAVAILABLE = -138
    NOT_FOUND_DEPRECATED = -161
    PROJECT_DOWN = -183
    BAD_EMAIL_ADDR = -205
    BAD_PASSWORD = -206
    NON_UNIQUE_EMAIL = -207
    ACCOUNT_CREATION_DISABLED = -208
    ATTACH_FAILED = -209


# Deprecated or duplicate codes and the code they should be treated as.
ERROR_ALIASES = {
    ErrorCode.NOT_FOUND_DEPRECATED: ErrorCode.NOT_FOUND,
    ErrorCode.DB_UNAVAILABLE: ErrorCode.PROJECT_DOWN,
    ErrorCode.NON_UNIQUE_EMAIL: ErrorCode.NOT_UNIQUE,
}


def canonical_error_code(code: Optional[int]) -> Optional[int]:
    """Fold deprecated codes onto the code the service says to treat them as."""
    if code is None:
        return None
    try:
        known = ErrorCode(code)
    except ValueError:
        return code
    return int(ERROR_ALIASES.get(known, known))


@dataclass(frozen=True, slots=True)
class RpcSuccess:
    """A reply whose top-level element is not ``<error>``."""

    tag: str
    body: Any


@dataclass(frozen=True, slots=True)
class RpcFailure:
    """An ``<error>`` reply carrying the remote error number and message."""

    error_num: Optional[int]
    error_string: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def canonical_code(self) -> Optional[int]:
        return canonical_error_code(self.error_num)


RpcReply = Union[RpcSuccess, RpcFailure]


def first_text(node: Any, key: str) -> Optional[str]:
    """Return the text of the first ``key`` child of ``node``, if any."""
    if not isinstance(node, dict):
        return None
    values = node.get(key)
    if not isinstance(values, list) or not values:
        return None
    value = values[0]
    if isinstance(value, dict):
        value = value.get(TEXT_KEY, "")
    return value if isinstance(value, str) else None


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def decode_reply(tree: ResponseTree) -> RpcReply:
    """
    Classify a response tree as success or failure.

    Raises:
        ValueError: when the tree is not a single-rooted mapping.
    """
    if not isinstance(tree, dict) or len(tree) != 1:
        raise ValueError("response tree must have exactly one root element")
    tag, body = next(iter(tree.items()))
    if tag != ERROR_TAG:
        return RpcSuccess(tag=tag, body=body)
    return RpcFailure(
        error_num=_to_int(first_text(body, "error_num")),
        error_string=(first_text(body, "error_string") or "").strip(),
        raw=body if isinstance(body, dict) else {},
    )
