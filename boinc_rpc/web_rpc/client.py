"""
Async client for the BOINC project web RPCs.

Every endpoint builds a query string from a declarative parameter table,
issues one GET against ``<project_url>/<script>.php`` and returns the XML
reply as a response tree. Remote error replies are returned unchanged unless
the handle was configured with ``raise_on_error``.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple
from xml.etree import ElementTree

import httpx

from boinc_rpc.config import BoincConfig, default_config
from boinc_rpc.log import redact_url
from boinc_rpc.metrics import default_metrics
from boinc_rpc.web_rpc import query
from boinc_rpc.web_rpc.query import Operation, build_query, build_url, join_list, pick_exclusive
from boinc_rpc.web_rpc.replies import ErrorCode, RpcFailure, decode_reply
from boinc_rpc.web_rpc.xml_tree import ResponseTree, parse_tree

logger = logging.getLogger(__name__)

SECURE_SCHEME_PREFIX = "https://"


class BoincRpcError(Exception):
    """Base exception for BOINC web RPC errors."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[int] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class ProjectUnreachableError(BoincRpcError):
    """Raised when the project server cannot be reached or times out."""


class MalformedReplyError(BoincRpcError):
    """Raised when the reply body is not well-formed XML."""


class RemoteRpcError(BoincRpcError):
    """Raised for ``<error>`` replies when the handle asks for it."""

    def __init__(self, failure: RpcFailure, *, status_code: Optional[int] = None) -> None:
        message = failure.error_string or "BOINC RPC error"
        super().__init__(
            f"{message} (error {failure.error_num})",
            code=failure.error_num,
            status_code=status_code,
        )
        self.failure = failure
        self.error_string = failure.error_string

    @property
    def is_not_found(self) -> bool:
        return self.failure.canonical_code == ErrorCode.NOT_FOUND

    @property
    def is_unavailable(self) -> bool:
        return self.failure.canonical_code == ErrorCode.PROJECT_DOWN


def raise_for_error(tree: ResponseTree, *, status_code: Optional[int] = None) -> ResponseTree:
    """Return ``tree`` unchanged, or raise ``RemoteRpcError`` for an error reply."""
    reply = decode_reply(tree)
    if isinstance(reply, RpcFailure):
        raise RemoteRpcError(reply, status_code=status_code)
    return tree


def is_secure_url(url: str) -> bool:
    return url[: len(SECURE_SCHEME_PREFIX)].lower() == SECURE_SCHEME_PREFIX


class BoincWebRpcClient:
    """Handle on one BOINC project's web RPC endpoints."""

    def __init__(
        self,
        config: BoincConfig | None = None,
        *,
        project_url: Optional[str] = None,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        config = config or default_config
        if project_url is not None:
            config = replace(config, project_url=project_url)
        self.config = config
        self._injected_client = async_client

    @property
    def project_url(self) -> str:
        return self.config.project_url

    @property
    def is_secure(self) -> bool:
        return is_secure_url(self.config.project_url)

    async def __aenter__(self) -> "BoincWebRpcClient":
        return self

    async def __aexit__(self, *_exc_info: Any) -> None:
        await self.aclose()

    def _transport_options(self, secure: bool) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "timeout": self.config.timeout,
            "headers": {"User-Agent": self.config.user_agent},
        }
        if secure:
            options["verify"] = self.config.verify_tls
            if not self.config.verify_tls:
                logger.warning(
                    "TLS certificate verification disabled for %s", self.config.project_url
                )
        return options

    @asynccontextmanager
    async def _transport(self, secure: bool) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client, or a client opened for this call only."""
        if self._injected_client is not None:
            yield self._injected_client
            return
        async with httpx.AsyncClient(**self._transport_options(secure)) as client:
            yield client

    async def aclose(self) -> None:
        """Owned clients never outlive a call; injected ones belong to the caller."""

    async def _invoke(self, url: str, *, operation: str = "rpc") -> Tuple[ResponseTree, int]:
        """
        Perform one GET against ``url`` and parse the reply body.

        The transport is picked from the URL scheme and opened for this call
        only. The body is read to the end before parsing; there is no
        partial result. Returns the tree with the HTTP status it came with.

        Raises:
            ProjectUnreachableError: on connection errors and timeouts.
            MalformedReplyError: when the body is not well-formed XML.
        """
        safe_url = redact_url(url)
        logger.debug(
            "rpc=%s url=%s", operation, safe_url, extra={"operation": operation, "url": safe_url}
        )
        default_metrics.incr_call()
        start = time.monotonic()
        chunks: List[bytes] = []
        try:
            async with self._transport(is_secure_url(url)) as client:
                async with client.stream("GET", url) as response:
                    async for chunk in response.aiter_bytes():
                        chunks.append(chunk)
                    status_code = response.status_code
        except httpx.RequestError as exc:
            logger.warning(
                "BOINC project unreachable for %s",
                operation,
                extra={"operation": operation, "url": safe_url, "error": type(exc).__name__},
            )
            default_metrics.record_operation(operation, success=False)
            raise ProjectUnreachableError("Project unreachable") from exc
        finally:
            default_metrics.record_duration(operation, (time.monotonic() - start) * 1000)

        if status_code >= 400:
            default_metrics.record_http_status(operation, status_code)
            logger.warning(
                "rpc=%s returned HTTP %s", operation, status_code, extra={"operation": operation}
            )

        try:
            tree = parse_tree(b"".join(chunks))
        except ElementTree.ParseError as exc:
            logger.warning(
                "rpc=%s returned malformed XML",
                operation,
                extra={"operation": operation, "error": str(exc)},
            )
            default_metrics.record_operation(operation, success=False)
            raise MalformedReplyError(
                "Unexpected response from project.", status_code=status_code
            ) from exc

        default_metrics.record_operation(operation, success=True)
        return tree, status_code

    async def _call(self, operation: Operation, **values: Any) -> ResponseTree:
        params = build_query(operation, values)
        url = build_url(self.config.project_url, operation, params)
        tree, status_code = await self._invoke(url, operation=operation.name)
        reply = decode_reply(tree)
        if isinstance(reply, RpcFailure):
            if reply.error_num is not None:
                default_metrics.record_remote_error(operation.name, reply.error_num)
            logger.info(
                "rpc=%s remote error %s: %s",
                operation.name,
                reply.error_num,
                reply.error_string,
                extra={"operation": operation.name, "error": reply.error_num},
            )
            if self.config.raise_on_error:
                raise RemoteRpcError(reply, status_code=status_code)
        return tree

    async def fetch_server_status(self, *, xml: int = 1) -> ResponseTree:
        """
        Get project server status (daemons, queue sizes, update time).

        Projects ask not to be polled more often than every 10 minutes.
        ``xml=0`` requests the HTML page instead, which will not parse.
        """
        return await self._call(query.SERVER_STATUS, xml=xml)

    async def fetch_project_config(self) -> ResponseTree:
        """Get the project's public configuration (name, account rules, platforms)."""
        return await self._call(query.PROJECT_CONFIG)

    async def create_account(
        self,
        email_addr: str,
        passwd_hash: str,
        user_name: str,
        *,
        invite_code: Optional[str] = None,
        team_name: Optional[str] = None,
    ) -> ResponseTree:
        """
        Create an account, or return the authenticator of a matching one.

        An existing account with the same email address and a different
        password yields an error reply. When the reply carries
        ``opaque_auth`` it must accompany the authenticator on later calls.
        """
        return await self._call(
            query.CREATE_ACCOUNT,
            email_addr=email_addr,
            passwd_hash=passwd_hash,
            user_name=user_name,
            invite_code=invite_code,
            team_name=team_name,
        )

    async def lookup_account(
        self,
        email_addr: Optional[str] = None,
        passwd_hash: Optional[str] = None,
        *,
        ldap_auth: Optional[int] = None,
        ldap_uid: Optional[str] = None,
        passwd: Optional[str] = None,
    ) -> ResponseTree:
        """
        Look up an account and, given the right credentials, its authenticator.

        Without ``passwd_hash`` the reply only confirms the account exists.
        A non-zero ``ldap_auth`` switches to LDAP authentication, in which
        case ``ldap_uid`` and ``passwd`` are sent and the email is ignored.
        """
        if ldap_auth:
            return await self._call(
                query.LOOKUP_ACCOUNT_LDAP, ldap_auth=ldap_auth, ldap_uid=ldap_uid, passwd=passwd
            )
        return await self._call(query.LOOKUP_ACCOUNT, email_addr=email_addr, passwd_hash=passwd_hash)

    async def fetch_account_info(
        self, account_key: str, *, opaque_auth: Optional[str] = None
    ) -> ResponseTree:
        """Get data associated with an account (``am_get_info``)."""
        return await self._call(query.AM_GET_INFO, account_key=account_key, opaque_auth=opaque_auth)

    async def update_account_info(
        self,
        account_key: str,
        *,
        opaque_auth: Optional[str] = None,
        name: Optional[str] = None,
        country: Optional[str] = None,
        postal_code: Optional[str] = None,
        global_prefs: Optional[str] = None,
        project_prefs: Optional[str] = None,
        url: Optional[str] = None,
        send_email: Optional[int] = None,
        show_hosts: Optional[int] = None,
        teamid: Optional[int] = None,
        venue: Optional[str] = None,
        email_addr: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> ResponseTree:
        """
        Update one or more account attributes (``am_set_info``).

        Changing ``email_addr`` requires a new ``password_hash`` as well.
        ``teamid=0`` leaves the current team.
        """
        return await self._call(
            query.AM_SET_INFO,
            account_key=account_key,
            opaque_auth=opaque_auth,
            name=name,
            country=country,
            postal_code=postal_code,
            global_prefs=global_prefs,
            project_prefs=project_prefs,
            url=url,
            send_email=send_email,
            show_hosts=show_hosts,
            teamid=teamid,
            venue=venue,
            email_addr=email_addr,
            password_hash=password_hash,
        )

    async def update_host_venue(
        self,
        account_key: str,
        hostid: int,
        venue: str,
        *,
        opaque_auth: Optional[str] = None,
    ) -> ResponseTree:
        """Set the venue of one of the account's hosts (``am_set_host_info``)."""
        return await self._call(
            query.AM_SET_HOST_INFO,
            account_key=account_key,
            hostid=hostid,
            venue=venue,
            opaque_auth=opaque_auth,
        )

    async def fetch_user(
        self,
        userid: Optional[int] = None,
        auth: Optional[str] = None,
        *,
        opaque_auth: Optional[str] = None,
        format: Optional[str] = "xml",
    ) -> ResponseTree:
        """
        Get public info about a user; with ``auth`` the reply lists their hosts.

        ``userid`` takes precedence when both identifiers are given.
        """
        key, value = pick_exclusive("show_user", [("userid", userid), ("auth", auth)])
        operation = query.SHOW_USER_BY_ID if key == "userid" else query.SHOW_USER_BY_AUTH
        return await self._call(operation, **{key: value}, opaque_auth=opaque_auth, format=format)

    async def fetch_pending_credit(self, authenticator: str) -> ResponseTree:
        """List results of the account that are waiting for credit."""
        return await self._call(query.PENDING_CREDIT, authenticator=authenticator, format="xml")

    async def fetch_result_status(
        self,
        ids: Optional[Any] = None,
        names: Optional[Any] = None,
    ) -> ResponseTree:
        """
        Get the status of results by id or by name.

        Either argument may be a comma-separated string or a sequence;
        ``ids`` takes precedence when both are given.
        """
        key, value = pick_exclusive(
            "result_status", [("ids", join_list(ids)), ("names", join_list(names))]
        )
        operation = query.RESULT_STATUS_BY_IDS if key == "ids" else query.RESULT_STATUS_BY_NAMES
        return await self._call(operation, **{key: value})

    async def create_team(
        self,
        account_key: str,
        name: str,
        team_type: int,
        *,
        opaque_auth: Optional[str] = None,
        url: Optional[str] = None,
        name_html: Optional[str] = None,
        description: Optional[str] = None,
        country: Optional[str] = None,
    ) -> ResponseTree:
        """Create a team founded by the given account."""
        return await self._call(
            query.CREATE_TEAM,
            account_key=account_key,
            name=name,
            type=team_type,
            opaque_auth=opaque_auth,
            url=url,
            name_html=name_html,
            description=description,
            country=country,
        )

    async def search_teams(self, team_name: str, *, format: Optional[str] = "xml") -> ResponseTree:
        """Find teams whose names contain ``team_name`` (at most 100)."""
        return await self._call(query.TEAM_SEARCH, team_name=team_name, format=format)

    async def fetch_team(self, team_id: int) -> ResponseTree:
        """Get info on the team with the given id."""
        return await self._call(query.TEAM_LOOKUP, team_id=team_id)

    async def fetch_team_members(
        self,
        teamid: int,
        *,
        account_key: Optional[str] = None,
        opaque_auth: Optional[str] = None,
        xml: int = 1,
    ) -> ResponseTree:
        """
        List team members.

        With a team administrator's ``account_key`` the reply also includes
        email addresses and the email opt-out flag.
        """
        return await self._call(
            query.TEAM_EMAIL_LIST,
            teamid=teamid,
            xml=xml,
            account_key=account_key,
            opaque_auth=opaque_auth,
        )
