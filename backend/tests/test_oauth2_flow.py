import html
import re
from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dashboard.providers import github_api, oauth2
from dashboard.providers.oauth2 import AccessToken

_REDIRECT_RE = re.compile(r'url=([^"]+)"')


def _client(monkeypatch, **env):
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("OAUTH2_TYPE", "github")
    monkeypatch.setenv("OAUTH2_CLIENT_ID", "cid")
    monkeypatch.setenv("OAUTH2_CLIENT_SECRET", "secret")
    monkeypatch.setenv("OAUTH2_ADMIN", "octocat")
    monkeypatch.setenv("SITE_COOKIE_NAME", "nz-jwt")
    for k, v in env.items():
        monkeypatch.setenv(k, v)

    from dashboard.core.settings import get_settings

    get_settings.cache_clear()

    from dashboard.db.base import Base
    from dashboard.db.session import get_db
    from dashboard.main import create_app

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    app = create_app()

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app), TestingSessionLocal


def _redirect_target(body: str) -> str:
    m = _REDIRECT_RE.search(body)
    assert m, body
    return html.unescape(m.group(1))


def _patch_provider(monkeypatch, *, login: str) -> dict:
    calls = {"exchange": 0, "user": 0}

    def fake_exchange(**kwargs):
        calls["exchange"] += 1
        calls["exchange_kwargs"] = kwargs
        return AccessToken(access_token="gho_test", token_type="bearer", scope="")

    def fake_user(self):
        calls["user"] += 1
        return {"login": login, "name": "Mona", "avatar_url": "https://a/x.png", "html_url": f"https://github.com/{login}"}

    monkeypatch.setattr(oauth2, "exchange_code", fake_exchange)
    monkeypatch.setattr(github_api.GitHubApi, "get_authenticated_user", fake_user)
    return calls


def _start_login(client: TestClient) -> str:
    r = client.get("/oauth2/login", headers={"Referer": "https://testserver/"})
    assert r.status_code == 200
    set_cookie = (r.headers.get("set-cookie") or "").lower()
    assert "nz-jwt-sk=" in set_cookie
    assert "httponly" in set_cookie
    assert "max-age=300" in set_cookie

    target = urlparse(_redirect_target(r.text))
    assert f"{target.scheme}://{target.netloc}{target.path}" == "https://github.com/login/oauth/authorize"
    q = parse_qs(target.query, keep_blank_values=True)
    assert q["client_id"] == ["cid"]
    assert q["redirect_uri"] == ["https://testserver/oauth2/callback"]
    assert q["response_type"] == ["code"]
    assert q["access_type"] == ["online"]
    return q["state"][0]


def test_admin_login_issues_session_and_redirects_home(monkeypatch):
    client, SessionLocal = _client(monkeypatch)
    calls = _patch_provider(monkeypatch, login="octocat")

    state = _start_login(client)
    cb = client.get(f"/oauth2/callback?code=abc&state={state}", headers={"Referer": "https://github.com/"})
    assert cb.status_code == 200
    assert _redirect_target(cb.text) == "/"

    set_cookie = (cb.headers.get("set-cookie") or "").lower()
    assert "nz-jwt=" in set_cookie
    assert "httponly" in set_cookie
    assert "max-age=86400" in set_cookie

    assert calls["exchange"] == 1
    assert calls["user"] == 1
    assert calls["exchange_kwargs"]["code"] == "abc"
    assert calls["exchange_kwargs"]["token_url"] == "https://github.com/login/oauth/access_token"
    assert calls["exchange_kwargs"]["redirect_uri"] == "https://testserver/oauth2/callback"

    token = client.cookies.get("nz-jwt")
    assert token and len(token) == 32

    from dashboard.core.security import token_hash
    from dashboard.core.time import as_aware_utc, utcnow
    from dashboard.models.session import Session as DbSession
    from dashboard.models.user import User

    with SessionLocal() as db:
        user = db.execute(select(User)).scalars().one()
        assert user.login == "octocat"
        assert user.profile_url == "https://github.com/octocat"
        sess = db.execute(select(DbSession)).scalars().one()
        assert sess.user_id == user.id
        assert sess.token_hash == token_hash(token)
        lifetime = as_aware_utc(sess.expires_at) - utcnow()
        assert 58 <= lifetime.days <= 62

    me = client.get("/api/me")
    assert me.status_code == 200
    assert me.json()["login"] == "octocat"


def test_non_admin_gets_error_page_and_no_cookie(monkeypatch):
    client, SessionLocal = _client(monkeypatch)
    calls = _patch_provider(monkeypatch, login="mallory")

    state = _start_login(client)
    cb = client.get(f"/oauth2/callback?code=abc&state={state}")
    assert cb.status_code == 400
    assert "not an administrator" in cb.text
    assert "nz-jwt=" not in (cb.headers.get("set-cookie") or "")
    assert calls["exchange"] == 1

    from dashboard.models.session import Session as DbSession

    with SessionLocal() as db:
        assert db.execute(select(DbSession)).scalars().first() is None

    assert client.get("/api/me").status_code == 401


def test_mismatched_state_skips_token_exchange(monkeypatch):
    client, _ = _client(monkeypatch)
    calls = _patch_provider(monkeypatch, login="octocat")

    state = _start_login(client)
    cb = client.get(f"/oauth2/callback?code=abc&state={state}tampered")
    assert cb.status_code == 400
    assert "Invalid login attempt" in cb.text
    assert "nz-jwt=" not in (cb.headers.get("set-cookie") or "")
    assert calls["exchange"] == 0
    assert calls["user"] == 0


def test_callback_without_state_cookie_is_rejected(monkeypatch):
    client, _ = _client(monkeypatch)
    calls = _patch_provider(monkeypatch, login="octocat")

    state = _start_login(client)
    client.cookies.clear()
    cb = client.get(f"/oauth2/callback?code=abc&state={state}")
    assert cb.status_code == 400
    assert calls["exchange"] == 0


def test_state_cannot_be_replayed(monkeypatch):
    client, _ = _client(monkeypatch)
    calls = _patch_provider(monkeypatch, login="octocat")

    state = _start_login(client)
    first = client.get(f"/oauth2/callback?code=abc&state={state}")
    assert first.status_code == 200
    second = client.get(f"/oauth2/callback?code=abc&state={state}")
    assert second.status_code == 400
    assert calls["exchange"] == 1


def test_failed_exchange_shows_error(monkeypatch):
    client, _ = _client(monkeypatch)
    calls = _patch_provider(monkeypatch, login="octocat")

    def failing_exchange(**kwargs):
        raise ValueError("Token exchange failed: bad_verification_code")

    monkeypatch.setattr(oauth2, "exchange_code", failing_exchange)

    state = _start_login(client)
    cb = client.get(f"/oauth2/callback?code=abc&state={state}")
    assert cb.status_code == 400
    assert "exchange failed" in cb.text
    assert calls["user"] == 0


def test_empty_login_shows_fetch_failure(monkeypatch):
    client, _ = _client(monkeypatch)
    _patch_provider(monkeypatch, login="")

    state = _start_login(client)
    cb = client.get(f"/oauth2/callback?code=abc&state={state}")
    assert cb.status_code == 400
    assert "Failed to fetch user info" in cb.text


def test_new_login_supersedes_previous_session(monkeypatch):
    client, SessionLocal = _client(monkeypatch)
    _patch_provider(monkeypatch, login="octocat")

    state = _start_login(client)
    assert client.get(f"/oauth2/callback?code=a&state={state}").status_code == 200
    first_token = client.cookies.get("nz-jwt")

    state = _start_login(client)
    assert client.get(f"/oauth2/callback?code=b&state={state}").status_code == 200
    second_token = client.cookies.get("nz-jwt")
    assert first_token != second_token

    from dashboard.core.security import token_hash
    from dashboard.models.session import Session as DbSession

    with SessionLocal() as db:
        rows = {s.token_hash: s for s in db.execute(select(DbSession)).scalars().all()}
        assert rows[token_hash(first_token)].revoked_at is not None
        assert rows[token_hash(second_token)].revoked_at is None


def test_gitee_login_end_to_end(monkeypatch):
    client, _ = _client(monkeypatch, OAUTH2_TYPE="gitee", OAUTH2_ADMIN="giteeadmin")
    seen: dict = {}

    def fake_exchange(**kwargs):
        seen["token_url"] = kwargs["token_url"]
        return AccessToken(access_token="t", token_type="bearer", scope="")

    def fake_user(self):
        seen["base_url"] = self.base_url
        seen["upload_url"] = self.upload_url
        return {"login": "GiteeAdmin"}

    monkeypatch.setattr(oauth2, "exchange_code", fake_exchange)
    monkeypatch.setattr(github_api.GitHubApi, "get_authenticated_user", fake_user)

    r = client.get("/oauth2/login")
    target = urlparse(_redirect_target(r.text))
    assert target.netloc == "gitee.com"
    q = parse_qs(target.query, keep_blank_values=True)
    assert q["redirect_uri"] == ["http://testserver/oauth2/callback"]

    cb = client.get(f"/oauth2/callback?code=abc&state={q['state'][0]}")
    assert cb.status_code == 200
    assert seen == {
        "token_url": "https://gitee.com/oauth/token",
        "base_url": "https://gitee.com/api/v5/",
        "upload_url": "https://gitee.com/api/v5/uploads/",
    }
    # Stored and reported with the provider's own casing.
    assert client.get("/api/me").json()["login"] == "GiteeAdmin"


def test_database_state_store_backs_login(monkeypatch):
    client, SessionLocal = _client(monkeypatch, OAUTH2_STATE_STORE="database")
    _patch_provider(monkeypatch, login="octocat")

    from dashboard.auth.state_store import DatabaseStateStore

    # Point the store at the test database.
    client.app.state.state_store = DatabaseStateStore(SessionLocal)

    state = _start_login(client)
    cb = client.get(f"/oauth2/callback?code=abc&state={state}")
    assert cb.status_code == 200


def test_me_requires_session(monkeypatch):
    client, _ = _client(monkeypatch)
    assert client.get("/api/me").status_code == 401
    client.cookies.set("nz-jwt", "unknown")
    assert client.get("/api/me").status_code == 401


def test_health(monkeypatch):
    client, _ = _client(monkeypatch)
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_failed_session_write_keeps_previous_session(monkeypatch):
    client, SessionLocal = _client(monkeypatch)
    _patch_provider(monkeypatch, login="octocat")

    state = _start_login(client)
    assert client.get(f"/oauth2/callback?code=a&state={state}").status_code == 200
    first_token = client.cookies.get("nz-jwt")

    from sqlalchemy.exc import SQLAlchemyError

    from dashboard.services import sessions as session_service

    def broken_create_session(db, **kwargs):
        raise SQLAlchemyError("database unavailable")

    monkeypatch.setattr(session_service, "create_session", broken_create_session)

    state = _start_login(client)
    cb = client.get(f"/oauth2/callback?code=b&state={state}")
    assert cb.status_code == 400
    assert "Failed to save the login session" in cb.text
    assert "nz-jwt=" not in (cb.headers.get("set-cookie") or "")
    assert client.cookies.get("nz-jwt") == first_token

    from dashboard.models.session import Session as DbSession

    with SessionLocal() as db:
        rows = db.execute(select(DbSession)).scalars().all()
        assert len(rows) == 1
        assert rows[0].revoked_at is None

    me = client.get("/api/me")
    assert me.status_code == 200
    assert me.json()["login"] == "octocat"


def test_login_case_change_reuses_user_and_keeps_provider_casing(monkeypatch):
    client, SessionLocal = _client(monkeypatch)
    _patch_provider(monkeypatch, login="octocat")

    state = _start_login(client)
    assert client.get(f"/oauth2/callback?code=a&state={state}").status_code == 200

    _patch_provider(monkeypatch, login="OctoCat")
    state = _start_login(client)
    assert client.get(f"/oauth2/callback?code=b&state={state}").status_code == 200

    from dashboard.models.user import User

    with SessionLocal() as db:
        users = db.execute(select(User)).scalars().all()
        assert [u.login for u in users] == ["OctoCat"]

    assert client.get("/api/me").json()["login"] == "OctoCat"
