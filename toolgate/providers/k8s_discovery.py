"""Kubernetes API discovery: resource catalogs and a discovery-backed REST mapper."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from toolgate.exceptions import AmbiguousResource, DependencyMissing, ResourceNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceDescriptor:
    group: str
    version: str
    resource: str
    namespaced: bool = False

    @property
    def group_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version

    def __str__(self) -> str:
        return f"{self.group_version}/{self.resource}"


@dataclass(frozen=True)
class APIResource:
    name: str
    kind: str = ""
    singular_name: str = ""
    namespaced: bool = False
    short_names: Tuple[str, ...] = ()
    verbs: Tuple[str, ...] = ()

    @property
    def is_subresource(self) -> bool:
        return "/" in self.name


@dataclass(frozen=True)
class APIResourceList:
    group_version: str
    resources: Tuple[APIResource, ...] = ()


@dataclass(frozen=True)
class APIGroup:
    name: str
    # Group/version strings, e.g. ("apps/v1", "apps/v1beta2").
    versions: Tuple[str, ...]
    preferred_version: str = ""

    @property
    def preferred(self) -> str:
        return self.preferred_version or (self.versions[0] if self.versions else "")


@dataclass(frozen=True)
class RESTMapping:
    resource: ResourceDescriptor
    kind: str

    @property
    def namespaced(self) -> bool:
        return self.resource.namespaced


class GroupDiscoveryFailed(Exception):
    """Some API groups could not be discovered; `partial` holds what did succeed."""

    def __init__(self, failed: Dict[str, BaseException], partial: List[APIResourceList]) -> None:
        self.failed = dict(failed)
        self.partial = list(partial)
        names = ", ".join(sorted(self.failed))
        super().__init__(f"unable to retrieve the complete list of server APIs: {names}")


def parse_group_version(group_version: str) -> Tuple[str, str]:
    """`v1` -> ("", "v1"); `apps/v1` -> ("apps", "v1")."""
    gv = (group_version or "").strip()
    if not gv:
        return "", ""
    parts = gv.split("/")
    if len(parts) == 1:
        return "", parts[0]
    if len(parts) == 2 and parts[0] and parts[1]:
        return parts[0], parts[1]
    raise ValueError(f"unexpected GroupVersion string: {group_version!r}")


def parse_group_resource(value: str) -> Tuple[str, str]:
    """`deployments.apps` -> ("deployments", "apps"); `pods` -> ("pods", "")."""
    resource, _, group = (value or "").partition(".")
    return resource, group


@runtime_checkable
class DiscoveryClient(Protocol):
    def server_groups(self) -> List[APIGroup]: ...

    def server_resources_for_group_version(self, group_version: str) -> APIResourceList: ...

    def server_preferred_resources(self) -> List[APIResourceList]:
        """
        Resources for the preferred version of every group.

        Raises GroupDiscoveryFailed (carrying the partial result) when only some groups failed.
        """
        ...

    def invalidate(self) -> None: ...


class RESTMapper(Protocol):
    def resource_for(self, group: str, version: str, resource: str) -> ResourceDescriptor: ...

    def kind_for(self, descriptor: ResourceDescriptor) -> str: ...

    def rest_mapping(self, group: str, kind: str, version: str = "") -> RESTMapping: ...


class CachedDiscovery:
    """
    Memoizing discovery base class.

    Subclasses implement `_fetch_groups` and `_fetch_resources`; results are cached until
    `invalidate()` is called.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._groups: Optional[List[APIGroup]] = None
        self._resources: Dict[str, APIResourceList] = {}

    def _fetch_groups(self) -> List[APIGroup]:
        raise NotImplementedError

    def _fetch_resources(self, group_version: str) -> APIResourceList:
        raise NotImplementedError

    def server_groups(self) -> List[APIGroup]:
        with self._lock:
            if self._groups is not None:
                return list(self._groups)
        groups = self._fetch_groups()
        with self._lock:
            if self._groups is None:
                self._groups = list(groups)
            return list(self._groups)

    def server_resources_for_group_version(self, group_version: str) -> APIResourceList:
        with self._lock:
            cached = self._resources.get(group_version)
        if cached is not None:
            return cached
        fetched = self._fetch_resources(group_version)
        with self._lock:
            return self._resources.setdefault(group_version, fetched)

    def server_preferred_resources(self) -> List[APIResourceList]:
        out: List[APIResourceList] = []
        failed: Dict[str, BaseException] = {}
        for group in self.server_groups():
            gv = group.preferred
            if not gv:
                continue
            try:
                out.append(self.server_resources_for_group_version(gv))
            except Exception as e:
                # Aggregated API servers that are down must not hide every other group.
                logger.warning("Discovery failed for %s: %s", gv, str(e)[:200])
                failed[gv] = e
        if failed:
            raise GroupDiscoveryFailed(failed, out)
        return out

    def invalidate(self) -> None:
        with self._lock:
            self._groups = None
            self._resources = {}


class KubernetesDiscovery(CachedDiscovery):
    """Discovery over the kubernetes python client (in-cluster config, else kubeconfig)."""

    def __init__(self, api_client: Any = None, *, context: Optional[str] = None) -> None:
        super().__init__()
        self._api_client = api_client
        self._context = context
        self._init_lock = threading.Lock()

    def _client(self) -> Any:
        if self._api_client is not None:
            return self._api_client
        with self._init_lock:
            if self._api_client is not None:
                return self._api_client
            try:
                from kubernetes import client, config
            except ImportError as import_err:
                raise DependencyMissing(f"Kubernetes client not available: {import_err}") from import_err
            try:
                config.load_incluster_config()
            except config.ConfigException:
                config.load_kube_config(context=self._context)
            self._api_client = client.ApiClient()
            return self._api_client

    def _fetch_groups(self) -> List[APIGroup]:
        from kubernetes import client

        api = self._client()
        groups: List[APIGroup] = []
        core = client.CoreApi(api).get_api_versions()
        core_versions = tuple(core.versions or ["v1"])
        groups.append(APIGroup(name="", versions=core_versions, preferred_version=core_versions[0]))
        for g in client.ApisApi(api).get_api_versions().groups or []:
            versions = tuple(v.group_version for v in (g.versions or []))
            preferred = g.preferred_version.group_version if g.preferred_version else ""
            groups.append(APIGroup(name=g.name, versions=versions, preferred_version=preferred))
        return groups

    def _fetch_resources(self, group_version: str) -> APIResourceList:
        group, _ = parse_group_version(group_version)
        path = f"/apis/{group_version}" if group else f"/api/{group_version}"
        obj = self._client().call_api(
            path,
            "GET",
            header_params={"Accept": "application/json"},
            response_type="V1APIResourceList",
            auth_settings=["BearerToken"],
            _return_http_data_only=True,
        )
        return _resource_list_from_v1(group_version, obj)


def _resource_list_from_v1(group_version: str, obj: Any) -> APIResourceList:
    resources = []
    for r in getattr(obj, "resources", None) or []:
        resources.append(
            APIResource(
                name=r.name,
                kind=r.kind or "",
                singular_name=getattr(r, "singular_name", None) or "",
                namespaced=bool(r.namespaced),
                short_names=tuple(getattr(r, "short_names", None) or ()),
                verbs=tuple(getattr(r, "verbs", None) or ()),
            )
        )
    return APIResourceList(group_version=group_version, resources=tuple(resources))


@dataclass(frozen=True)
class _MapperEntry:
    group: str
    version: str
    resource: APIResource
    version_rank: int

    def descriptor(self) -> ResourceDescriptor:
        return ResourceDescriptor(
            group=self.group, version=self.version, resource=self.resource.name, namespaced=self.resource.namespaced
        )


class DiscoveryRESTMapper:
    """
    Maps group/version/resource and group/kind to resource descriptors using discovery.

    The index is built lazily on first use and dropped by `reset()`, so the next lookup
    re-reads discovery (which the caller is expected to have invalidated).
    """

    def __init__(self, discovery: DiscoveryClient) -> None:
        self._discovery = discovery
        self._lock = threading.Lock()
        self._index: Optional[List[_MapperEntry]] = None

    def reset(self) -> None:
        with self._lock:
            self._index = None

    def _entries(self) -> List[_MapperEntry]:
        with self._lock:
            if self._index is not None:
                return self._index
        built = self._build()
        with self._lock:
            if self._index is None:
                self._index = built
            return self._index

    def _build(self) -> List[_MapperEntry]:
        entries: List[_MapperEntry] = []
        for group in self._discovery.server_groups():
            ordered = [group.preferred] + [v for v in group.versions if v != group.preferred]
            for rank, gv in enumerate(v for v in ordered if v):
                try:
                    listing = self._discovery.server_resources_for_group_version(gv)
                    _, version = parse_group_version(gv)
                except Exception as e:
                    logger.debug("REST mapper skipping %s: %s", gv, e)
                    continue
                for res in listing.resources:
                    if res.is_subresource:
                        continue
                    entries.append(_MapperEntry(group=group.name, version=version, resource=res, version_rank=rank))
        return entries

    def resource_for(self, group: str, version: str, resource: str) -> ResourceDescriptor:
        wanted = (resource or "").lower()
        matches = [
            e
            for e in self._entries()
            if wanted in (e.resource.name.lower(), e.resource.singular_name.lower())
            and (not group or e.group == group)
            and (not version or e.version == version)
        ]
        if not matches:
            raise ResourceNotFound(f"no matches for {group}/{version}, Resource={resource}")
        # Best (lowest-ranked) version per group.
        by_group: Dict[str, _MapperEntry] = {}
        for e in sorted(matches, key=lambda m: m.version_rank):
            by_group.setdefault(e.group, e)
        if len(by_group) > 1:
            raise AmbiguousResource([str(e.descriptor()) for e in by_group.values()])
        return next(iter(by_group.values())).descriptor()

    def kind_for(self, descriptor: ResourceDescriptor) -> str:
        for e in self._entries():
            if (e.group, e.version, e.resource.name) == (descriptor.group, descriptor.version, descriptor.resource):
                return e.resource.kind
        raise ResourceNotFound(f"no kind registered for {descriptor}")

    def rest_mapping(self, group: str, kind: str, version: str = "") -> RESTMapping:
        matches = [
            e
            for e in self._entries()
            if e.group == group and e.resource.kind == kind and (not version or e.version == version)
        ]
        if not matches:
            where = f"{group}/{version}" if version else (group or "core")
            raise ResourceNotFound(f'no matches for kind "{kind}" in version "{where}"')
        best = min(matches, key=lambda e: e.version_rank)
        return RESTMapping(resource=best.descriptor(), kind=best.resource.kind)
