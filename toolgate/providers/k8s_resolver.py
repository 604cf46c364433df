"""Resolve caller-supplied resource hints (apiVersion/kind/resource) to concrete API resources."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional, Tuple

from toolgate.exceptions import AmbiguousResource, DependencyMissing, InvalidArguments, ResourceNotFound
from toolgate.providers.k8s_discovery import (
    APIResourceList,
    DiscoveryClient,
    GroupDiscoveryFailed,
    ResourceDescriptor,
    RESTMapper,
    parse_group_resource,
    parse_group_version,
)

logger = logging.getLogger(__name__)

__all__ = ["DiscoveryRefresher", "ResourceDescriptor", "ResourceResolver"]


class ResourceResolver:
    """
    Turns (apiVersion, kind, resource[, group]) hints into a ResourceDescriptor.

    Exact resolution goes through the REST mapper. When that fails and no apiVersion was
    given, the server's preferred-resource catalog is scanned (best-effort), matching
    plural/singular/short names or the kind. More than one candidate is rejected with the
    sorted candidate list so the caller can disambiguate.

    Neither the mapper nor the discovery client is owned here.
    """

    def __init__(self, mapper: Optional[RESTMapper], discovery: Optional[DiscoveryClient] = None) -> None:
        self._mapper = mapper
        self._discovery = discovery

    def _require_mapper(self) -> RESTMapper:
        if self._mapper is None:
            raise DependencyMissing("missing rest mapper")
        return self._mapper

    def resolve_exact(self, api_version: str = "", kind: str = "", resource: str = "") -> Tuple[ResourceDescriptor, bool]:
        mapper = self._require_mapper()
        if resource:
            name, group = parse_group_resource(resource)
            version: Optional[str] = ""
            if api_version:
                try:
                    _, version = parse_group_version(api_version)
                except ValueError:
                    version = None
            if version is not None:
                try:
                    found = mapper.resource_for(group, version, name)
                    mapping = mapper.rest_mapping(found.group, mapper.kind_for(found), found.version)
                    return mapping.resource, mapping.namespaced
                except Exception as e:
                    logger.debug("Exact resource lookup failed for %r (apiVersion=%r): %s", resource, api_version, e)
        if not api_version or not kind:
            raise InvalidArguments("apiVersion and kind required")
        try:
            group, version = parse_group_version(api_version)
        except ValueError as e:
            raise InvalidArguments(str(e)) from e
        mapping = mapper.rest_mapping(group, kind, version)
        return mapping.resource, mapping.namespaced

    def resolve(
        self, api_version: str = "", kind: str = "", resource: str = "", group: str = ""
    ) -> Tuple[ResourceDescriptor, bool]:
        self._require_mapper()
        api_version = (api_version or "").strip()
        kind = (kind or "").strip()
        resource = (resource or "").strip()
        group = (group or "").strip()

        if not group and "." in resource:
            resource, group = parse_group_resource(resource)

        if api_version or resource:
            exact_resource = f"{resource}.{group}" if resource and group else resource
            try:
                return self.resolve_exact(api_version, kind, exact_resource)
            except Exception:
                # An explicit apiVersion means the caller asked for something specific.
                if api_version:
                    raise

        if not kind and not resource:
            raise InvalidArguments("kind or resource required")
        if self._discovery is None:
            raise DependencyMissing("missing discovery client")

        try:
            lists = self._discovery.server_preferred_resources()
        except GroupDiscoveryFailed as e:
            logger.warning("Resolving with partial discovery: %s", e)
            lists = e.partial

        candidates = _candidates(lists, api_version=api_version, kind=kind, resource=resource, group=group)
        if not candidates:
            if resource:
                raise ResourceNotFound(f'no matching resource found for "{resource}"')
            raise ResourceNotFound(f'no matching resource found for kind "{kind}"')
        if len(candidates) > 1:
            raise AmbiguousResource([str(c) for c in candidates])
        found = candidates[0]
        return found, found.namespaced


def _candidates(
    lists: List[APIResourceList], *, api_version: str, kind: str, resource: str, group: str
) -> List[ResourceDescriptor]:
    out: List[ResourceDescriptor] = []
    for listing in lists:
        try:
            gv_group, gv_version = parse_group_version(listing.group_version)
        except ValueError:
            continue
        if group and gv_group != group:
            continue
        if api_version and listing.group_version != api_version:
            continue
        for res in listing.resources:
            if not res.name or res.is_subresource:
                continue
            if resource:
                if resource not in (res.name, res.singular_name) and resource not in res.short_names:
                    continue
            elif kind and res.kind != kind:
                continue
            out.append(ResourceDescriptor(group=gv_group, version=gv_version, resource=res.name, namespaced=res.namespaced))
    return sorted(out, key=str)


class DiscoveryRefresher:
    """
    TTL-gated invalidation of cached discovery data.

    Newly installed resource types are invisible until discovery is invalidated; doing that
    on every call is too expensive, so it happens at most once per TTL.
    """

    def __init__(
        self,
        discovery: Optional[DiscoveryClient],
        mapper: Optional[object] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._discovery = discovery
        self._mapper = mapper
        self._clock = clock
        self._lock = threading.Lock()
        self._last_reset = clock()

    def refresh_if_stale(self, ttl_seconds: float) -> bool:
        """Returns True when discovery was invalidated by this call."""
        if ttl_seconds <= 0 or (self._discovery is None and self._mapper is None):
            return False
        with self._lock:
            now = self._clock()
            if now - self._last_reset < ttl_seconds:
                return False
            if self._discovery is not None:
                self._discovery.invalidate()
            reset = getattr(self._mapper, "reset", None)
            if callable(reset):
                reset()
            self._last_reset = now
            logger.debug("Discovery cache invalidated (ttl=%ss)", ttl_seconds)
            return True
