import pytest

import httpx

from boinc_rpc.web_rpc.client import BoincWebRpcClient

OK_XML = b"<reply><success/></reply>"


class CaptureHandler:
    def __init__(self, body: bytes = OK_XML):
        self.body = body
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, content=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def params(self) -> dict:
        return dict(self.last.url.params)


def make_client(handler, project_url="https://boinc.example.org/project/"):
    return BoincWebRpcClient(
        project_url=project_url,
        async_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_create_account_required_only():
    handler = CaptureHandler(b"<account_out><authenticator>abc</authenticator></account_out>")
    client = make_client(handler)
    tree = await client.create_account("alice@example.com", "hash", "alice")
    assert tree == {"account_out": {"authenticator": ["abc"]}}
    assert handler.last.url.path == "/project/create_account.php"
    assert handler.params == {
        "email_addr": "alice@example.com",
        "passwd_hash": "hash",
        "user_name": "alice",
    }


@pytest.mark.asyncio
async def test_create_account_with_optionals():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.create_account("a@b.c", "h", "alice", invite_code="XYZ", team_name="Crunchers")
    assert handler.params["invite_code"] == "XYZ"
    assert handler.params["team_name"] == "Crunchers"


@pytest.mark.asyncio
async def test_lookup_account_email_variants():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.lookup_account("a@b.c")
    assert handler.params == {"email_addr": "a@b.c"}
    await client.lookup_account("a@b.c", "h")
    assert handler.params == {"email_addr": "a@b.c", "passwd_hash": "h"}
    assert handler.last.url.path == "/project/lookup_account.php"


@pytest.mark.asyncio
async def test_lookup_account_ldap_ignores_email():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.lookup_account("a@b.c", "h", ldap_auth=1, ldap_uid="alice", passwd="pw")
    assert handler.params == {"ldap_auth": "1", "ldap_uid": "alice", "passwd": "pw"}


@pytest.mark.asyncio
async def test_lookup_account_requires_email_without_ldap():
    client = make_client(CaptureHandler())
    with pytest.raises(ValueError):
        await client.lookup_account()


@pytest.mark.asyncio
async def test_fetch_account_info():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.fetch_account_info("key")
    assert handler.last.url.path == "/project/am_get_info.php"
    assert handler.params == {"account_key": "key"}
    await client.fetch_account_info("key", opaque_auth="opaque")
    assert handler.params == {"account_key": "key", "opaque_auth": "opaque"}


@pytest.mark.asyncio
async def test_update_account_info_sends_only_supplied_fields():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.update_account_info("key", name="Alice", country="", teamid=0, venue="home")
    assert handler.last.url.path == "/project/am_set_info.php"
    assert handler.params == {"account_key": "key", "name": "Alice", "teamid": "0", "venue": "home"}


@pytest.mark.asyncio
async def test_update_account_info_email_change():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.update_account_info("key", email_addr="new@b.c", password_hash="h2", project_prefs="<p/>")
    assert handler.params == {
        "account_key": "key",
        "project_prefs": "<p/>",
        "email_addr": "new@b.c",
        "password_hash": "h2",
    }


@pytest.mark.asyncio
async def test_update_host_venue():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.update_host_venue("key", 42, "work")
    assert handler.last.url.path == "/project/am_set_host_info.php"
    assert handler.params == {"account_key": "key", "hostid": "42", "venue": "work"}


@pytest.mark.asyncio
async def test_fetch_user_prefers_userid():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.fetch_user(userid=12, auth="secret")
    assert handler.last.url.path == "/project/show_user.php"
    assert handler.params == {"userid": "12", "format": "xml"}


@pytest.mark.asyncio
async def test_fetch_user_by_auth():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.fetch_user(auth="secret", opaque_auth="o", format=None)
    assert handler.params == {"auth": "secret", "opaque_auth": "o"}


@pytest.mark.asyncio
async def test_fetch_user_requires_identifier():
    handler = CaptureHandler()
    client = make_client(handler)
    with pytest.raises(ValueError):
        await client.fetch_user()
    assert handler.requests == []


@pytest.mark.asyncio
async def test_fetch_pending_credit():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.fetch_pending_credit("auth")
    assert handler.last.url.path == "/project/pending.php"
    assert handler.params == {"authenticator": "auth", "format": "xml"}


@pytest.mark.asyncio
async def test_fetch_result_status_ids_and_names():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.fetch_result_status(ids=[10, 11], names="ignored")
    assert handler.last.url.path == "/project/result_status.php"
    assert handler.params == {"ids": "10,11"}
    await client.fetch_result_status(names=["wu_1_0", "wu_2_0"])
    assert handler.params == {"names": "wu_1_0,wu_2_0"}
    with pytest.raises(ValueError):
        await client.fetch_result_status()


@pytest.mark.asyncio
async def test_create_team():
    handler = CaptureHandler(b"<create_team_reply><success/><teamid>9</teamid></create_team_reply>")
    client = make_client(handler)
    tree = await client.create_team("key", "Crunchers", 4, country="Germany")
    assert tree == {"create_team_reply": {"success": [""], "teamid": ["9"]}}
    assert handler.last.url.path == "/project/create_team.php"
    assert handler.params == {"account_key": "key", "name": "Crunchers", "type": "4", "country": "Germany"}


@pytest.mark.asyncio
async def test_search_teams_and_fetch_team():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.search_teams("crunch")
    assert handler.last.url.path == "/project/team_lookup.php"
    assert handler.params == {"team_name": "crunch", "format": "xml"}
    await client.search_teams("crunch", format="html")
    assert handler.params == {"team_name": "crunch"}
    await client.fetch_team(9)
    assert handler.params == {"team_id": "9"}


@pytest.mark.asyncio
async def test_fetch_team_members():
    handler = CaptureHandler()
    client = make_client(handler)
    await client.fetch_team_members(9)
    assert handler.last.url.path == "/project/team_email_list.php"
    assert handler.params == {"teamid": "9", "xml": "1"}
    await client.fetch_team_members(9, account_key="admin", xml=0)
    assert handler.params == {"teamid": "9", "xml": "0", "account_key": "admin"}


@pytest.mark.asyncio
async def test_fetch_project_config_has_no_query():
    handler = CaptureHandler()
    client = make_client(handler, project_url="http://plain.example.org")
    await client.fetch_project_config()
    assert str(handler.last.url) == "http://plain.example.org/get_project_config.php"
