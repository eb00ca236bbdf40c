"""
In-process stand-in for the json-server backend.

Mounted on a requests.Session as a transport adapter, it serves the same
REST surface as the real mock server: collections with ?field=value
filters, full-document PUT, the custom /login endpoint and the POST /users
defaults. Every request is recorded for assertions.
"""
import copy
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from requests.adapters import BaseAdapter
from requests.models import Response
from requests.structures import CaseInsensitiveDict

TOKEN = "fake-token"


@dataclass
class RecordedRequest:
    method: str
    path: str
    query: Dict[str, List[str]]
    headers: Dict[str, str]
    body: Any = None


def seed_db() -> Dict[str, List[Dict[str, Any]]]:
    users = [
        {"id": 1, "username": "alice", "email": "a@x.com", "password": "secret", "role": "user",
         "createdAt": "2024-01-01T00:00:00.000Z"},
        {"id": 2, "username": "bob", "email": "b@x.com", "password": "hunter22", "role": "user",
         "createdAt": "2024-01-02T00:00:00.000Z"},
        {"id": 3, "username": "root", "email": "admin@x.com", "password": "adminpass", "role": "Admin",
         "createdAt": "2024-01-03T00:00:00.000Z"},
    ]
    specs = [
        (1, "Tokyo at night", "Neon streets and ramen stalls after midnight.", "Travel", 1),
        (2, "Rust for Pythonistas", "What ownership feels like coming from Python.", "Tech", 2),
        (3, "Minimalist living", "Owning fewer things and liking it more.", "Lifestyle", 1),
        (4, "Street food of Bangkok", "A travel guide to the best noodle carts.", "Food", 2),
        (5, "Hiking the Alps", "Three huts, two passes, one blister.", "Travel", 2),
        (6, "Type hints in practice", "Where annotations pay off in real code.", "Tech", 1),
        (7, "Morning routines", "Coffee first, email never.", "Lifestyle", 2),
        (8, "Sourdough basics", "Starter, flour, water, patience.", "Food", 1),
    ]
    posts = []
    for pid, title, desc, cat, uid in specs:
        posts.append({
            "id": pid,
            "title": title,
            "description": desc,
            "imageUrl": f"https://img.example.com/{pid}.jpg",
            "category": cat,
            "userId": uid,
            "likes": 0,
            "likesHistory": [],
            "comments": [],
            "createdAt": f"2024-02-0{pid}T10:00:00.000Z",
        })
    posts[0]["likes"] = 2
    posts[0]["likesHistory"] = [2, 3]
    posts[7]["comments"] = [
        {"id": "c1", "userId": 2, "text": "Love it", "createdAt": "2024-03-01T00:00:00.000Z"},
        {"id": "c2", "username": "carol", "text": "From the old days", "createdAt": "2024-03-02T00:00:00.000Z"},
    ]
    return {"users": users, "posts": posts}


class FakeJsonServer(BaseAdapter):
    def __init__(self, db: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        super().__init__()
        self.db = db if db is not None else seed_db()
        self.requests: List[RecordedRequest] = []
        # (METHOD, path) -> status to answer once
        self.failures: Dict[Tuple[str, str], int] = {}
        # answer 401 to everything except /login
        self.reject_tokens = False

    # --- test helpers ---
    def fail_next(self, method: str, path: str, status: int = 500) -> None:
        self.failures[(method.upper(), path)] = status

    def find(self, resource: str, doc_id: Any) -> Optional[Dict[str, Any]]:
        for doc in self.db[resource]:
            if str(doc["id"]) == str(doc_id):
                return doc
        return None

    def calls(self, method: str, path: str) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == method and r.path == path]

    # --- adapter API ---
    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        parsed = urlparse(request.url)
        body = json.loads(request.body) if request.body else None
        self.requests.append(
            RecordedRequest(request.method, parsed.path, parse_qs(parsed.query), dict(request.headers), body)
        )
        status, payload = self._handle(request.method, parsed.path, parse_qs(parsed.query), body)
        return self._response(request, status, payload)

    def close(self):
        pass

    def _response(self, request, status: int, payload: Any) -> Response:
        resp = Response()
        resp.status_code = status
        resp.reason = "OK" if status < 400 else "Error"
        resp.headers = CaseInsensitiveDict({"Content-Type": "application/json"})
        resp._content = json.dumps(payload).encode("utf-8") if payload is not None else b""
        resp.encoding = "utf-8"
        resp.url = request.url
        resp.request = request
        return resp

    # --- routing ---
    def _handle(self, method: str, path: str, query: Dict[str, List[str]], body: Any):
        if method == "OPTIONS":
            return 200, None
        forced = self.failures.pop((method, path), None)
        if forced is not None:
            return forced, {"error": "forced failure"}

        if method == "POST" and path == "/login":
            email = (body or {}).get("email", "").lower()
            password = (body or {}).get("password")
            for user in self.db["users"]:
                if user["email"] == email and user["password"] == password:
                    return 200, {"user": copy.deepcopy(user), "token": TOKEN}
            return 401, {"error": "Invalid email or password"}

        if self.reject_tokens:
            return 401, {"error": "unauthorized"}

        parts = [p for p in path.split("/") if p]
        if not parts or parts[0] not in self.db:
            return 404, {}
        resource = parts[0]
        docs = self.db[resource]

        if len(parts) == 1:
            if method == "GET":
                out = [
                    d for d in docs
                    if all(str(d.get(k)) in values for k, values in query.items())
                ]
                return 200, copy.deepcopy(out)
            if method == "POST":
                doc = copy.deepcopy(body or {})
                if resource == "users":
                    doc["role"] = doc.get("role") or "user"
                    doc["createdAt"] = doc.get("createdAt") or datetime.now(timezone.utc).isoformat()
                doc["id"] = max((int(d["id"]) for d in docs), default=0) + 1
                docs.append(doc)
                return 201, copy.deepcopy(doc)
            return 404, {}

        doc = self.find(resource, parts[1])
        if doc is None:
            return 404, {}
        if method == "GET":
            return 200, copy.deepcopy(doc)
        if method == "PUT":
            replacement = copy.deepcopy(body or {})
            replacement["id"] = doc["id"]
            docs[docs.index(doc)] = replacement
            return 200, copy.deepcopy(replacement)
        if method == "DELETE":
            docs.remove(doc)
            return 200, {}
        return 404, {}
