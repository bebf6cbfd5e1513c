"""
In-memory stand-ins for the Supabase client and the blob backend.

FakeSupabase implements the slice of the PostgREST query builder the services
use, with primary-key/unique checks, foreign-key actions and the
next_file_version counter function.
"""

import threading
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError

from app.core.errors import ConflictError, NotFoundError
from app.storage.object_store import BlobInfo

UNIQUE = {
    "profiles": [("id",)],
    "jobs": [("id",)],
    "job_files": [("id",), ("file_path",)],
    "file_comments": [("id",)],
    "file_versions": [("id",), ("file_path",), ("file_id", "version_number")],
    "file_version_counters": [("file_id",)],
    "project_templates": [("id",)],
}

# (child table, child column, parent table, ON DELETE action)
FOREIGN_KEYS = [
    ("job_files", "job_id", "jobs", "cascade"),
    ("file_comments", "file_id", "job_files", "cascade"),
    ("file_comments", "parent_id", "file_comments", "set null"),
    ("file_versions", "file_id", "job_files", "cascade"),
    ("file_version_counters", "file_id", "job_files", "cascade"),
]

DEFAULTS = {
    "jobs": {"priority": "medium", "status": "pending", "description": None,
             "client_name": None, "thumbnail": None},
    "job_files": {"is_presentation": False},
    "file_comments": {"parent_id": None},
    "project_templates": {"category": "general", "is_public": True, "created_by": None,
                          "description": None, "thumbnail": None, "template_data": None},
}

NO_CREATED_AT = {"file_version_counters"}


def _norm(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _comparable(value: Any):
    if isinstance(value, str) and "T" in value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


def _is_uuid(value: Any) -> bool:
    try:
        uuid.UUID(str(value))
        return True
    except ValueError:
        return False


def _literal(value: str) -> Any:
    return {"true": True, "false": False, "null": None}.get(value, value)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.payload: Any = None
        self.filters = []
        self.ordering = None
        self.row_limit: Optional[int] = None
        self.row_offset = 0
        self.invalid_id = None

    # statements

    def select(self, columns: str = "*", **kwargs):
        self.op = "select"
        self.columns = columns
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, values: Dict[str, Any]):
        self.op = "update"
        self.payload = values
        return self

    def delete(self):
        self.op = "delete"
        return self

    # filters

    def eq(self, column: str, value: Any):
        if column == "id" and self.db.strict_uuid and not _is_uuid(value):
            self.invalid_id = value
        self.filters.append(lambda row: _norm(row.get(column)) == _norm(value))
        return self

    def in_(self, column: str, values: List[Any]):
        wanted = {_norm(v) for v in values}
        self.filters.append(lambda row: _norm(row.get(column)) in wanted)
        return self

    def gt(self, column: str, value: Any):
        def check(row):
            current = row.get(column)
            return current is not None and _comparable(current) > _comparable(value)
        self.filters.append(check)
        return self

    def gte(self, column: str, value: Any):
        def check(row):
            current = row.get(column)
            return current is not None and _comparable(current) >= _comparable(value)
        self.filters.append(check)
        return self

    def is_(self, column: str, value: str):
        self.filters.append(lambda row: _norm(row.get(column)) == _norm(_literal(value)))
        return self

    def or_(self, expression: str):
        conditions = []
        for part in expression.split(","):
            column, op, value = part.split(".", 2)
            if op != "eq":
                raise NotImplementedError(op)
            conditions.append((column, _literal(value)))
        self.filters.append(
            lambda row: any(_norm(row.get(c)) == _norm(v) for c, v in conditions)
        )
        return self

    def order(self, column: str, desc: bool = False):
        self.ordering = (column, desc)
        return self

    def limit(self, count: int):
        self.row_limit = count
        return self

    def offset(self, count: int):
        self.row_offset = count
        return self

    def execute(self):
        if self.invalid_id is not None:
            raise APIError({
                "code": "22P02",
                "message": f"invalid input syntax for type uuid: \"{self.invalid_id}\"",
            })
        with self.db.lock:
            self.db.calls.append((self.table, self.op))
            data = getattr(self, f"_run_{self.op}")()
            for hook in list(self.db.after_execute):
                hook(self)
        return SimpleNamespace(data=data, count=None)

    # execution

    def _matching(self) -> List[Dict[str, Any]]:
        rows = self.db.tables.setdefault(self.table, [])
        return [row for row in rows if all(f(row) for f in self.filters)]

    def _run_select(self):
        rows = self._matching()
        if self.ordering:
            column, desc = self.ordering
            rows = sorted(rows, key=lambda r: (r.get(column) is None, _comparable(r.get(column))), reverse=desc)
        rows = rows[self.row_offset:]
        if self.row_limit is not None:
            rows = rows[:self.row_limit]
        return [self._project(row) for row in rows]

    def _project(self, row):
        if self.columns.strip() == "*":
            return dict(row)
        return {c.strip(): row.get(c.strip()) for c in self.columns.split(",")}

    def _run_insert(self):
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        created = []
        for values in payload:
            row = self.db.build_row(self.table, values)
            self.db.check_row(self.table, row)
            self.db.tables.setdefault(self.table, []).append(row)
            created.append(dict(row))
        return created

    def _run_update(self):
        updated = []
        for row in self._matching():
            candidate = {**row, **self.payload}
            self.db.check_row(self.table, candidate, ignore=row)
            row.update(self.payload)
            updated.append(dict(row))
        return updated

    def _run_delete(self):
        doomed = self._matching()
        self.db.remove_rows(self.table, doomed)
        return [dict(row) for row in doomed]


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: Dict[str, Any]):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        if self.name != "next_file_version":
            raise APIError({"code": "42883", "message": f"function {self.name} does not exist"})
        file_id = self.params["p_file_id"]
        with self.db.lock:
            if not any(r["id"] == file_id for r in self.db.tables.get("job_files", [])):
                raise APIError({"code": "23503", "message": "file does not exist"})
            counters = self.db.tables.setdefault("file_version_counters", [])
            counter = next((c for c in counters if c["file_id"] == file_id), None)
            if counter is None:
                counter = {"file_id": file_id, "last_version": 0}
                counters.append(counter)
            counter["last_version"] += 1
            return SimpleNamespace(data=counter["last_version"])


class FakeAuth:
    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.tokens: Dict[str, str] = {}
        self.get_user_calls = 0
        self.lock = threading.Lock()

    def _user(self, record):
        return SimpleNamespace(
            id=record["id"],
            email=record["email"],
            user_metadata=dict(record["user_metadata"]),
            app_metadata={},
        )

    def create_user(self, email: str, password: str = "secret-pass", full_name: Optional[str] = None) -> Dict[str, Any]:
        with self.lock:
            if email.lower() in self.users:
                raise Exception("User already registered")
            record = {
                "id": str(uuid.uuid4()),
                "email": email,
                "password": password,
                "user_metadata": {"full_name": full_name} if full_name else {},
            }
            self.users[email.lower()] = record
            return record

    def issue_token(self, user_id: str) -> str:
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = user_id
        return token

    def sign_up(self, credentials):
        options = credentials.get("options") or {}
        record = self.create_user(
            credentials["email"], credentials["password"], (options.get("data") or {}).get("full_name")
        )
        return SimpleNamespace(user=self._user(record), session=None)

    def sign_in_with_password(self, credentials):
        record = self.users.get(credentials["email"].lower())
        if record is None or record["password"] != credentials["password"]:
            raise Exception("Invalid login credentials")
        token = self.issue_token(record["id"])
        return SimpleNamespace(user=self._user(record), session=SimpleNamespace(access_token=token))

    def get_user(self, jwt: str = None):
        self.get_user_calls += 1
        user_id = self.tokens.get(jwt)
        if user_id is None:
            raise Exception("invalid JWT: unable to parse or verify signature")
        record = next(r for r in self.users.values() if r["id"] == user_id)
        return SimpleNamespace(user=self._user(record))

    def sign_out(self):
        return None


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.lock = threading.RLock()
        self.auth = FakeAuth()
        self.calls = []
        self.after_execute = []
        self.strict_uuid = False
        self._clock = datetime.now(timezone.utc)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, name, params)

    def now(self) -> str:
        # strictly increasing so created_at orders rows like insertion order
        with self.lock:
            self._clock = max(self._clock + timedelta(microseconds=1), datetime.now(timezone.utc))
            return self._clock.isoformat()

    def build_row(self, table: str, values: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(DEFAULTS.get(table, {}))
        row.update(values)
        if table != "file_version_counters":
            row.setdefault("id", str(uuid.uuid4()))
        if table not in NO_CREATED_AT:
            row.setdefault("created_at", self.now())
        return row

    def seed(self, table: str, values: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a row as-is (explicit timestamps allowed)."""
        with self.lock:
            row = self.build_row(table, values)
            self.tables.setdefault(table, []).append(row)
            return dict(row)

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return [dict(r) for r in self.tables.get(table, [])]

    def check_row(self, table: str, row: Dict[str, Any], ignore: Optional[Dict[str, Any]] = None):
        for columns in UNIQUE.get(table, []):
            key = tuple(_norm(row.get(c)) for c in columns)
            for other in self.tables.get(table, []):
                if other is ignore:
                    continue
                if tuple(_norm(other.get(c)) for c in columns) == key:
                    raise APIError({
                        "code": "23505",
                        "message": f"duplicate key value violates unique constraint on {table}({', '.join(columns)})",
                    })
        for child, column, parent, action in FOREIGN_KEYS:
            if child != table or row.get(column) is None:
                continue
            if not any(_norm(p["id"]) == _norm(row[column]) for p in self.tables.get(parent, [])):
                raise APIError({
                    "code": "23503",
                    "message": f"insert or update on table {table} violates foreign key constraint on {column}",
                })

    def remove_rows(self, table: str, doomed: List[Dict[str, Any]]):
        if not doomed:
            return
        ids = {_norm(r.get("id")) for r in doomed}
        self.tables[table] = [r for r in self.tables.get(table, []) if not any(r is d for d in doomed)]
        for child, column, parent, action in FOREIGN_KEYS:
            if parent != table:
                continue
            children = [r for r in self.tables.get(child, []) if _norm(r.get(column)) in ids]
            if action == "set null":
                for r in children:
                    r[column] = None
            else:
                self.remove_rows(child, children)


class InMemoryBlobBackend:
    def __init__(self):
        self.blobs: Dict[str, Dict[str, Any]] = {}
        self.fail_deletes = False
        self.lock = threading.Lock()

    def upload_file(self, file_content: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        with self.lock:
            if key in self.blobs:
                raise ConflictError("A file already exists at this path")
            self.blobs[key] = {
                "content": file_content,
                "content_type": content_type,
                "created_at": datetime.now(timezone.utc),
            }
        return key

    def download_file(self, key: str) -> bytes:
        blob = self.blobs.get(key)
        if blob is None:
            raise NotFoundError("File not found")
        return blob["content"]

    def delete_files(self, keys: List[str]) -> bool:
        if self.fail_deletes:
            return False
        with self.lock:
            for key in keys:
                self.blobs.pop(key, None)
        return True

    def list_files(self, prefix: str = "") -> List[BlobInfo]:
        return [
            BlobInfo(path=path, created_at=blob["created_at"])
            for path, blob in sorted(self.blobs.items())
            if path.startswith(prefix)
        ]

    def backdate(self, key: str, seconds: int):
        self.blobs[key]["created_at"] -= timedelta(seconds=seconds)
