"""Declarative query-parameter tables for the BOINC web RPC endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlencode

logger = logging.getLogger(__name__)


def truthy(value: Any) -> bool:
    """Include only non-empty, non-zero values."""
    return bool(value)


def present(value: Any) -> bool:
    """Include any supplied value, zero included."""
    return value is not None


def always(_value: Any) -> bool:
    return True


def xml_only(value: Any) -> bool:
    """The ``format`` parameter is only meaningful when it asks for XML."""
    return value == "xml"


@dataclass(frozen=True, slots=True)
class ParamSpec:
    name: str
    required: bool = False
    include: Callable[[Any], bool] = truthy


@dataclass(frozen=True, slots=True)
class Operation:
    """One remote endpoint: its script path and accepted parameters."""

    name: str
    path: str
    params: Tuple[ParamSpec, ...] = ()


def _required(*names: str) -> Tuple[ParamSpec, ...]:
    return tuple(ParamSpec(name, required=True, include=present) for name in names)


def _optional(*names: str, include: Callable[[Any], bool] = truthy) -> Tuple[ParamSpec, ...]:
    return tuple(ParamSpec(name, include=include) for name in names)


SERVER_STATUS = Operation(
    "server_status",
    "server_status.php",
    (ParamSpec("xml", include=always),),
)
PROJECT_CONFIG = Operation("get_project_config", "get_project_config.php")
CREATE_ACCOUNT = Operation(
    "create_account",
    "create_account.php",
    _required("email_addr", "passwd_hash", "user_name") + _optional("invite_code", "team_name"),
)
LOOKUP_ACCOUNT = Operation(
    "lookup_account",
    "lookup_account.php",
    _required("email_addr") + _optional("passwd_hash"),
)
LOOKUP_ACCOUNT_LDAP = Operation(
    "lookup_account",
    "lookup_account.php",
    _required("ldap_auth", "ldap_uid", "passwd"),
)
AM_GET_INFO = Operation(
    "am_get_info",
    "am_get_info.php",
    _required("account_key") + _optional("opaque_auth"),
)
AM_SET_INFO = Operation(
    "am_set_info",
    "am_set_info.php",
    _required("account_key")
    + _optional(
        "opaque_auth",
        "name",
        "country",
        "postal_code",
        "global_prefs",
        "project_prefs",
        "url",
    )
    # 0 is meaningful here: teamid=0 leaves the current team.
    + _optional("send_email", "show_hosts", "teamid", include=present)
    + _optional("venue", "email_addr", "password_hash"),
)
AM_SET_HOST_INFO = Operation(
    "am_set_host_info",
    "am_set_host_info.php",
    _required("account_key", "hostid", "venue") + _optional("opaque_auth"),
)
SHOW_USER_BY_ID = Operation(
    "show_user",
    "show_user.php",
    _required("userid") + _optional("opaque_auth") + _optional("format", include=xml_only),
)
SHOW_USER_BY_AUTH = Operation(
    "show_user",
    "show_user.php",
    _required("auth") + _optional("opaque_auth") + _optional("format", include=xml_only),
)
PENDING_CREDIT = Operation(
    "pending_credit",
    "pending.php",
    _required("authenticator") + (ParamSpec("format", include=always),),
)
RESULT_STATUS_BY_IDS = Operation("result_status", "result_status.php", _required("ids"))
RESULT_STATUS_BY_NAMES = Operation("result_status", "result_status.php", _required("names"))
CREATE_TEAM = Operation(
    "create_team",
    "create_team.php",
    _required("account_key", "name", "type")
    + _optional("opaque_auth", "url", "name_html", "description", "country"),
)
TEAM_SEARCH = Operation(
    "team_name",
    "team_lookup.php",
    _required("team_name") + _optional("format", include=xml_only),
)
TEAM_LOOKUP = Operation("team_lookup", "team_lookup.php", _required("team_id"))
TEAM_EMAIL_LIST = Operation(
    "team_email_list",
    "team_email_list.php",
    _required("teamid") + (ParamSpec("xml", include=always),) + _optional("account_key", "opaque_auth"),
)


def build_query(operation: Operation, values: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Assemble the query parameters for ``operation`` from ``values``.

    Parameters are emitted in table order. Required parameters must be
    supplied (not ``None``); optional ones are kept only when their
    ``include`` rule accepts the value. Names outside the table are rejected.
    """
    known = {spec.name for spec in operation.params}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"{operation.name} does not accept: {', '.join(unknown)}")

    params: Dict[str, Any] = {}
    for spec in operation.params:
        value = values.get(spec.name)
        if spec.required:
            if value is None:
                raise ValueError(f"{operation.name} requires {spec.name}")
            params[spec.name] = value
        elif spec.include(value):
            params[spec.name] = value
    return params


def pick_exclusive(
    operation_name: str, choices: Sequence[Tuple[str, Any]]
) -> Tuple[str, Any]:
    """
    Return the first supplied identifier out of mutually exclusive ``choices``.

    Choices are listed in precedence order; later ones are ignored (and the
    fact logged) when an earlier one is present.
    """
    supplied = [(name, value) for name, value in choices if value]
    if not supplied:
        names = " or ".join(name for name, _ in choices)
        raise ValueError(f"{operation_name} requires {names}")
    if len(supplied) > 1:
        logger.debug(
            "%s received %s; using %s",
            operation_name,
            ", ".join(name for name, _ in supplied),
            supplied[0][0],
        )
    return supplied[0]


def join_list(value: Any) -> Optional[str]:
    """Comma-join sequences of ids or names; pass scalars through."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(str(item) for item in value)
    return str(value)


def build_url(project_url: str, operation: Operation, params: Mapping[str, Any]) -> str:
    """Join the project URL, the operation path and the encoded query."""
    url = f"{project_url.rstrip('/')}/{operation.path}"
    if params:
        url = f"{url}?{urlencode(params)}"
    return url
