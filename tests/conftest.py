import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import pytest


# Ensure project root is on sys.path so `import doctavende...` works when running tests directly
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from doctavende.db.gateway import RemoteGateway  # noqa: E402


class MockAPIError(Exception):
    """Mimics postgrest / gotrue / storage3 errors, which expose `.message`."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MockResponse:
    def __init__(self, data: Optional[Iterable[Dict[str, Any]]]) -> None:
        self.data = list(data) if data is not None else None


class MockTable:
    def __init__(self, name: str, rows: Iterable[Dict[str, Any]] | None = None) -> None:
        self.name = name
        self.rows: List[Dict[str, Any]] = [dict(row) for row in rows or []]
        self.fail_with: Optional[str] = None
        self.executed: List[Tuple[str, Any, List[Tuple[str, Any]]]] = []
        self._next_id = 1
        self._reset()

    # Query builder ---------------------------------------------------------
    def select(self, columns: str = "*") -> "MockTable":
        self._mode = "select"
        self._columns = columns
        return self

    def eq(self, column: str, value: Any) -> "MockTable":
        self._filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "MockTable":
        self._order = (column, desc)
        return self

    def limit(self, value: int) -> "MockTable":
        self._limit = value
        return self

    def insert(self, data: Dict[str, Any] | List[Dict[str, Any]]) -> "MockTable":
        self._mode = "insert"
        self._pending = data
        return self

    def update(self, data: Dict[str, Any]) -> "MockTable":
        self._mode = "update"
        self._pending = data
        return self

    def delete(self) -> "MockTable":
        self._mode = "delete"
        return self

    # Execution -------------------------------------------------------------
    def execute(self) -> MockResponse:
        try:
            self.executed.append((self._mode or "", self._pending, list(self._filters)))
            if self.fail_with:
                raise MockAPIError(self.fail_with)

            if self._mode == "select":
                rows = [row for row in self.rows if self._match(row)]
                if self._order is not None:
                    column, desc = self._order
                    rows = sorted(rows, key=lambda r: str(r.get(column) or ""), reverse=desc)
                if self._limit is not None:
                    rows = rows[: self._limit]
                return MockResponse([self._project(row) for row in rows])

            if self._mode == "insert":
                payloads = self._pending if isinstance(self._pending, list) else [self._pending]
                inserted: List[Dict[str, Any]] = []
                for payload in payloads:
                    entry = dict(payload)
                    entry.setdefault("id", f"{self.name}-{self._next_id}")
                    entry.setdefault("created_at", f"2026-01-01T00:00:{self._next_id:02d}+00:00")
                    self._next_id += 1
                    self.rows.append(entry)
                    inserted.append(dict(entry))
                return MockResponse(inserted)

            if self._mode == "update":
                updated: List[Dict[str, Any]] = []
                for row in self.rows:
                    if self._match(row):
                        row.update(self._pending)
                        updated.append(dict(row))
                return MockResponse(updated)

            if self._mode == "delete":
                removed = [row for row in self.rows if self._match(row)]
                self.rows = [row for row in self.rows if not self._match(row)]
                return MockResponse(removed)

            return MockResponse([])
        finally:
            self._reset()

    # Helpers ---------------------------------------------------------------
    def _reset(self) -> None:
        self._mode: Optional[str] = None
        self._columns = "*"
        self._filters: List[Tuple[str, Any]] = []
        self._order: Optional[Tuple[str, bool]] = None
        self._limit: Optional[int] = None
        self._pending: Any = None

    def _match(self, row: Dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self._filters)

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self._columns.strip() == "*":
            return dict(row)
        wanted = [c.strip() for c in self._columns.split(",")]
        return {c: row.get(c) for c in wanted}


class MockBucket:
    def __init__(self, storage: "MockStorage", name: str) -> None:
        self._storage = storage
        self.name = name

    def upload(self, path: str, file: bytes, file_options: Optional[Dict[str, str]] = None) -> Any:
        if self._storage.fail_with:
            raise MockAPIError(self._storage.fail_with)
        self._storage.uploads.append(
            {"bucket": self.name, "path": path, "data": file, "options": file_options or {}}
        )
        return SimpleNamespace(path=path)

    def get_public_url(self, path: str) -> str:
        return f"https://storage.test/{self.name}/{path}?"


class MockStorage:
    def __init__(self) -> None:
        self.uploads: List[Dict[str, Any]] = []
        self.fail_with: Optional[str] = None

    def from_(self, bucket: str) -> MockBucket:
        return MockBucket(self, bucket)


class MockSubscription:
    def __init__(self, auth: "MockAuth", callback: Callable[[str, Any], None]) -> None:
        self._auth = auth
        self._callback = callback

    def unsubscribe(self) -> None:
        if self._callback in self._auth.callbacks:
            self._auth.callbacks.remove(self._callback)


class MockAuth:
    def __init__(self) -> None:
        self.users_by_token: Dict[str, Any] = {}
        self.accounts: Dict[str, Tuple[str, Any]] = {}
        self.callbacks: List[Callable[[str, Any], None]] = []
        self.session: Any = None
        self.revoked: List[str] = []
        self.signups: List[Dict[str, Any]] = []
        self.admin = SimpleNamespace(sign_out=self.revoked.append)

    def add_user(self, user_id: str, email: str, password: str = "secreto123") -> str:
        user = SimpleNamespace(id=user_id, email=email)
        token = f"token-{user_id}"
        self.users_by_token[token] = user
        self.accounts[email] = (password, user)
        return token

    def _emit(self, event: str, session: Any) -> None:
        for callback in list(self.callbacks):
            callback(event, session)

    def get_user(self, token: str) -> Any:
        user = self.users_by_token.get(token)
        if user is None:
            raise MockAPIError("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)

    def get_session(self) -> Any:
        return self.session

    def sign_in_with_password(self, credentials: Dict[str, str]) -> Any:
        account = self.accounts.get(credentials["email"])
        if account is None or account[0] != credentials["password"]:
            raise MockAPIError("Invalid login credentials")
        user = account[1]
        self.session = SimpleNamespace(
            access_token=f"token-{user.id}",
            refresh_token="refresh",
            expires_at=1893456000,
            user=user,
        )
        self._emit("SIGNED_IN", self.session)
        return SimpleNamespace(user=user, session=self.session)

    def sign_up(self, credentials: Dict[str, str]) -> Any:
        if credentials["email"] in self.accounts:
            raise MockAPIError("User already registered")
        self.signups.append(credentials)
        user = SimpleNamespace(id=f"user-{len(self.signups)}", email=credentials["email"])
        return SimpleNamespace(user=user, session=None)

    def sign_out(self) -> None:
        self.session = None
        self._emit("SIGNED_OUT", None)

    def on_auth_state_change(self, callback: Callable[[str, Any], None]) -> MockSubscription:
        self.callbacks.append(callback)
        return MockSubscription(self, callback)


class MockSupabaseClient:
    def __init__(self, tables: Optional[Dict[str, MockTable]] = None) -> None:
        self.tables: Dict[str, MockTable] = tables or {}
        self.storage = MockStorage()
        self.auth = MockAuth()

    def table(self, name: str) -> MockTable:
        if name not in self.tables:
            self.tables[name] = MockTable(name)
        return self.tables[name]


OWNER_ID = "owner-1"
OTHER_OWNER_ID = "owner-2"
ADMIN_ID = "admin-1"


def business_row(**overrides: Any) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "id": "biz-1",
        "owner_id": OWNER_ID,
        "name": "Pizzería Don Juan",
        "description": "Pizza a la piedra",
        "category": "Gastronomía",
        "phone": "+54 351 555-1234",
        "image_url": None,
        "location_lat": -31.42,
        "location_lng": -64.18,
        "active": True,
        "subscription_expires_at": "2026-12-01T00:00:00+00:00",
        "created_at": "2026-01-01T00:00:00+00:00",
        "updated_at": "2026-01-01T00:00:00+00:00",
    }
    row.update(overrides)
    return row


def promotion_row(**overrides: Any) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "id": "promo-1",
        "business_id": "biz-1",
        "title": "2x1 en muzzarella",
        "description": "Solo al mediodía",
        "image_url": None,
        "days_of_week": [1, 3],
        "created_at": "2026-01-02T00:00:00+00:00",
        "updated_at": "2026-01-02T00:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def supabase_client() -> MockSupabaseClient:
    client = MockSupabaseClient(
        {
            "profiles": MockTable(
                "profiles",
                [
                    {"id": OWNER_ID, "email": "duenio@test.com", "is_admin": False},
                    {"id": OTHER_OWNER_ID, "email": "otro@test.com", "is_admin": False},
                    {"id": ADMIN_ID, "email": "admin@test.com", "is_admin": True},
                ],
            ),
            "businesses": MockTable("businesses"),
            "promotions": MockTable("promotions"),
            "config": MockTable("config", [{"key": "subscription_price", "value": 5000}]),
        }
    )
    client.auth.add_user(OWNER_ID, "duenio@test.com")
    client.auth.add_user(OTHER_OWNER_ID, "otro@test.com")
    client.auth.add_user(ADMIN_ID, "admin@test.com")
    return client


@pytest.fixture
def gateway(supabase_client: MockSupabaseClient) -> RemoteGateway:
    return RemoteGateway(supabase_client)  # type: ignore[arg-type]


@pytest.fixture
def make_business() -> Callable[..., Dict[str, Any]]:
    return business_row


@pytest.fixture
def make_promotion() -> Callable[..., Dict[str, Any]]:
    return promotion_row
