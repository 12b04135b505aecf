"""In-memory stand-in for the hosted backend's /auth/v1 and /rest/v1 APIs."""

import json
import uuid
from datetime import datetime, timedelta, timezone

import httpx
from jose import jwt

from genstudio.backend.client import BackendClient
from genstudio.core.timeutil import parse_ts

BASE_URL = "https://backend.test"
ANON_KEY = "anon-key"

# (parent table, embedded table) -> (parent column, child column, many)
RELATIONS = {
    ("user_subscriptions", "plans"): ("plan_id", "id", False),
    ("profiles", "user_subscriptions"): ("id", "user_id", True),
}


def _split_top(select: str) -> list[str]:
    parts, depth, cur = [], 0, ""
    for ch in select:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(cur.strip())
            cur = ""
        else:
            cur += ch
    if cur.strip():
        parts.append(cur.strip())
    return parts


def _as_text(v) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    if v is None:
        return "null"
    return str(v)


def _gt(a, b: str) -> bool:
    if a is None:
        return False
    try:
        return float(a) > float(b)
    except (TypeError, ValueError):
        return parse_ts(a) > parse_ts(b)


class FakeBackend:
    def __init__(self):
        self.tables = {"profiles": [], "plans": [], "user_subscriptions": [], "projects": []}
        self.users = {}  # access token -> auth user
        self.accounts = {}  # email -> (password, auth user)
        self.failures = {}  # (method, table) -> (status, message)
        self.requests: list[httpx.Request] = []

    # ---- setup helpers ----

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def client(self, token: str | None = None) -> BackendClient:
        return BackendClient(BASE_URL, ANON_KEY, token, transport=self.transport())

    def seed_plans(self):
        self.tables["plans"] = [
            {"id": "plan-free", "name": "Free", "credit_limit": 5},
            {"id": "plan-pro", "name": "Pro", "credit_limit": 500},
            {"id": "plan-enterprise", "name": "Enterprise", "credit_limit": 10000},
        ]
        return self

    def issue_token(self, user: dict) -> str:
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
        token = jwt.encode({"sub": user["id"], "exp": int(exp.timestamp())}, "test-secret", algorithm="HS256")
        self.users[token] = user
        return token

    def add_user(self, email: str, password: str = "pw", full_name: str = "Test User", role: str = "member") -> tuple[str, str]:
        user = {"id": str(uuid.uuid4()), "email": email, "user_metadata": {"full_name": full_name}}
        self.accounts[email] = (password, user)
        self.tables["profiles"].append({"id": user["id"], "email": email, "full_name": full_name, "role": role})
        return user["id"], self.issue_token(user)

    def add_subscription(self, user_id: str, plan_id: str = "plan-pro", credits: int = 10, is_active: bool = True):
        row = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "plan_id": plan_id,
            "credits_remaining": credits,
            "is_active": is_active,
            "expires_at": (datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
        }
        self.tables["user_subscriptions"].append(row)
        return row

    def subscription(self, user_id: str) -> dict | None:
        return next((r for r in self.tables["user_subscriptions"] if r["user_id"] == user_id), None)

    def fail(self, method: str, table: str, status: int = 500, message: str = "boom"):
        self.failures[(method, table)] = (status, message)

    def writes(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method in ("POST", "PATCH", "DELETE") and "/rest/v1/" in r.url.path]

    # ---- transport ----

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith("/auth/v1/"):
            return self._auth(request, path[len("/auth/v1/"):])
        if path.startswith("/rest/v1/"):
            return self._rest(request, path[len("/rest/v1/"):])
        return httpx.Response(404, json={"message": "no route"})

    def _bearer(self, request: httpx.Request) -> str:
        return request.headers.get("Authorization", "").removeprefix("Bearer ").strip()

    def _auth(self, request: httpx.Request, op: str) -> httpx.Response:
        body = json.loads(request.content or b"{}")

        if op == "signup":
            if body["email"] in self.accounts:
                return httpx.Response(422, json={"msg": "User already registered"})
            user = {"id": str(uuid.uuid4()), "email": body["email"], "user_metadata": body.get("data") or {}}
            self.accounts[body["email"]] = (body["password"], user)
            return httpx.Response(200, json=user)

        if op == "token":
            password, user = self.accounts.get(body.get("email"), (None, None))
            if user is None or password != body.get("password"):
                return httpx.Response(400, json={"error_description": "Invalid login credentials"})
            token = self.issue_token(user)
            return httpx.Response(200, json={"access_token": token, "refresh_token": "r-" + token[-8:], "user": user})

        if op == "logout":
            self.users.pop(self._bearer(request), None)
            return httpx.Response(204)

        if op == "user":
            user = self.users.get(self._bearer(request))
            if user is None:
                return httpx.Response(401, json={"msg": "invalid JWT"})
            return httpx.Response(200, json=user)

        return httpx.Response(404, json={"msg": "no route"})

    def _rest(self, request: httpx.Request, table: str) -> httpx.Response:
        failure = self.failures.get((request.method, table))
        if failure:
            return httpx.Response(failure[0], json={"message": failure[1]})

        rows = self.tables.setdefault(table, [])
        select, order, limit, filters = "*", None, None, []
        for key, value in request.url.params.multi_items():
            if key == "select":
                select = value
            elif key == "order":
                order = value
            elif key == "limit":
                limit = int(value)
            else:
                op, _, operand = value.partition(".")
                filters.append((key, op, operand))

        def match(row):
            for col, op, operand in filters:
                if op == "eq" and _as_text(row.get(col)) != operand:
                    return False
                if op == "gt" and not _gt(row.get(col), operand):
                    return False
            return True

        if request.method == "POST":
            payload = json.loads(request.content)
            new_rows = payload if isinstance(payload, list) else [payload]
            created = []
            for r in new_rows:
                r = dict(r)
                r.setdefault("id", str(uuid.uuid4()))
                r.setdefault("created_at", datetime.now(timezone.utc).isoformat())
                rows.append(r)
                created.append(dict(r))
            return httpx.Response(201, json=created)

        matched = [r for r in rows if match(r)]

        if request.method == "PATCH":
            values = json.loads(request.content)
            for r in matched:
                r.update(values)
            return httpx.Response(200, json=[dict(r) for r in matched])

        if request.method == "DELETE":
            self.tables[table] = [r for r in rows if not match(r)]
            return httpx.Response(200, json=[dict(r) for r in matched])

        if order:
            for part in reversed(order.split(",")):
                col, _, direction = part.partition(".")
                matched.sort(
                    key=lambda r: (r.get(col) is None, r.get(col) if r.get(col) is not None else 0),
                    reverse=(direction == "desc"),
                )
        if limit is not None:
            matched = matched[:limit]
        return httpx.Response(200, json=[self._project(table, r, select) for r in matched])

    def _project(self, table: str, row: dict, select: str) -> dict:
        out = {}
        for token in _split_top(select):
            if "(" in token:
                name, inner = token.split("(", 1)
                name, inner = name.strip(), inner[:-1]
                parent_col, child_col, many = RELATIONS[(table, name)]
                children = [
                    self._project(name, c, inner)
                    for c in self.tables.get(name, [])
                    if _as_text(c.get(child_col)) == _as_text(row.get(parent_col))
                ]
                out[name] = children if many else (children[0] if children else None)
            elif token == "*":
                out.update(row)
            else:
                out[token] = row.get(token)
        return out
