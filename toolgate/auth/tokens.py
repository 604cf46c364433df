from __future__ import annotations

import json
from typing import Any, List, Optional

from itsdangerous import BadData, URLSafeTimedSerializer

from toolgate.auth.models import Role, User

TOKEN_SALT = "toolgate-bearer-v1"


def _serializer(secret: Optional[str]) -> Optional[URLSafeTimedSerializer]:
    if not secret:
        return None
    return URLSafeTimedSerializer(secret_key=secret, salt=TOKEN_SALT)


def encode_user_token(secret: str, user: User) -> Optional[str]:
    s = _serializer(secret)
    if s is None:
        return None
    payload = {
        "id": user.id,
        "role": user.role.value,
        "namespaces": sorted(user.allowed_namespaces),
        "toolsets": sorted(user.allowed_toolsets),
        "tools": sorted(user.allowed_tools),
    }
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True)
    return s.dumps(raw)


def decode_user_token(secret: Optional[str], token: Optional[str], *, max_age: int) -> Optional[User]:
    if not token:
        return None
    s = _serializer(secret)
    if s is None:
        return None
    try:
        raw = s.loads(token, max_age=max_age)
        data = json.loads(raw)
        if not isinstance(data, dict):
            return None
        user_id = str(data.get("id") or "").strip()
        if not user_id:
            return None
        role = Role(str(data.get("role") or Role.NAMESPACE.value))
        namespaces = _string_list(data.get("namespaces"))
        toolsets = _string_list(data.get("toolsets"))
        tools = _string_list(data.get("tools"))
        if namespaces is None or toolsets is None or tools is None:
            return None
        return User(
            id=user_id,
            role=role,
            allowed_namespaces=frozenset(namespaces),
            allowed_toolsets=frozenset(toolsets),
            allowed_tools=frozenset(tools),
        )
    except (BadData, ValueError, TypeError):
        return None


def _string_list(value: Any) -> Optional[List[str]]:
    """Absent -> []; a JSON list of strings -> that list; anything else -> None."""
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
        return None
    return value
