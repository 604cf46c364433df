from __future__ import annotations

import logging
import os
from typing import Dict, Iterable, List, Optional

from toolgate.auth.models import Role, User
from toolgate.auth.tokens import decode_user_token
from toolgate.config import _env_int, _split_csv
from toolgate.exceptions import Forbidden, Unauthorized

logger = logging.getLogger(__name__)

LOCAL_USER = User(id="local", role=Role.CLUSTER)


class AccessPolicy:
    """
    Authenticates callers and authorizes tool/namespace access.

    Credentials are checked in order: static API keys, signed bearer tokens, then (local
    mode only, empty credential only) the local cluster-role user. There is no silent
    default identity otherwise.
    """

    def __init__(
        self,
        *,
        api_keys: Optional[Dict[str, User]] = None,
        token_secret: Optional[str] = None,
        token_ttl_seconds: int = 3600,
        local_user: Optional[User] = None,
    ) -> None:
        self._api_keys = dict(api_keys or {})
        self._token_secret = token_secret
        self._token_ttl_seconds = token_ttl_seconds
        self._local_user = local_user

    def authenticate(self, credential: Optional[str]) -> User:
        cred = (credential or "").strip()
        if cred:
            user = self._api_keys.get(cred)
            if user is not None:
                return user
            user = decode_user_token(self._token_secret, cred, max_age=self._token_ttl_seconds)
            if user is not None:
                return user
            raise Unauthorized("invalid credential")
        if self._local_user is not None:
            return self._local_user
        raise Unauthorized("credential required")

    def authorize_tool(self, user: User, toolset_id: str, tool_name: str) -> None:
        # Permissive unless the user carries an explicit toolset/tool allow-list.
        if not user.allowed_toolsets and not user.allowed_tools:
            return
        if toolset_id and toolset_id in user.allowed_toolsets:
            return
        if tool_name in user.allowed_tools:
            return
        raise Forbidden(f"tool not allowed: {tool_name}")

    def check_namespace(self, user: User, namespace: Optional[str], namespaced: bool) -> None:
        if user.role == Role.CLUSTER:
            return
        if not namespaced:
            raise Forbidden("cluster-scoped access denied for namespace role")
        if not namespace:
            raise Forbidden("namespace required for namespace role")
        if namespace not in user.allowed_namespaces:
            raise Forbidden(f"namespace not allowed: {namespace}")

    def filter_namespaces(self, user: User, namespaces: Iterable[str]) -> List[str]:
        if user.role == Role.CLUSTER:
            return list(namespaces)
        return [ns for ns in namespaces if ns in user.allowed_namespaces]


def _parse_api_keys(raw: str) -> Dict[str, User]:
    """
    Parse `key:user_id[:namespace:ns1|ns2]` entries.

    Entries without a role are cluster-role users.
    """
    out: Dict[str, User] = {}
    for item in _split_csv(raw):
        parts = item.split(":")
        if len(parts) < 2 or not parts[0] or not parts[1]:
            logger.warning("Ignoring malformed API key entry (expected key:user_id[:role[:namespaces]])")
            continue
        key, user_id = parts[0], parts[1]
        role = Role.CLUSTER
        namespaces: List[str] = []
        if len(parts) >= 3 and parts[2]:
            try:
                role = Role(parts[2])
            except ValueError:
                logger.warning("Ignoring API key for %s: unknown role %r", user_id, parts[2])
                continue
        if len(parts) >= 4:
            namespaces = [x.strip() for x in parts[3].split("|") if x.strip()]
        out[key] = User(id=user_id, role=role, allowed_namespaces=frozenset(namespaces))
    return out


def load_access_policy() -> AccessPolicy:
    """
    Load the access policy from env.

    Recommended vars:
    - TOOLGATE_AUTH_MODE=token|local
    - TOOLGATE_TOKEN_SECRET=<random secret>
    - TOOLGATE_TOKEN_TTL_SECONDS=3600
    - TOOLGATE_API_KEYS=key1:alice,key2:bob:namespace:team-a|team-b
    """
    mode = (os.getenv("TOOLGATE_AUTH_MODE") or "token").strip().lower()
    secret = (os.getenv("TOOLGATE_TOKEN_SECRET") or "").strip() or None
    api_keys = _parse_api_keys(os.getenv("TOOLGATE_API_KEYS", ""))
    if mode not in ("token", "local"):
        logger.warning("Unknown TOOLGATE_AUTH_MODE=%r; using token mode", mode)
        mode = "token"
    if mode == "token" and not secret and not api_keys:
        logger.warning("No TOOLGATE_TOKEN_SECRET or TOOLGATE_API_KEYS configured; all tool calls will be rejected")
    return AccessPolicy(
        api_keys=api_keys,
        token_secret=secret,
        token_ttl_seconds=max(60, _env_int("TOOLGATE_TOKEN_TTL_SECONDS", 3600)),
        local_user=LOCAL_USER if mode == "local" else None,
    )
