"""
Pytest config.

Local imports like `import toolgate` rely on the repo root being on sys.path. In some
environments (e.g. when invoking a global `pytest` entrypoint), that doesn't happen
reliably during collection, so we pin it here.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

from toolgate.providers.k8s_discovery import (  # noqa: E402
    APIGroup,
    APIResource,
    APIResourceList,
    CachedDiscovery,
)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDiscovery(CachedDiscovery):
    """In-memory discovery snapshot. `failing` group/versions raise on fetch."""

    def __init__(self, groups: List[APIGroup], resources: Dict[str, APIResourceList], failing: Optional[Set[str]] = None):
        super().__init__()
        self.groups = groups
        self.resources = resources
        self.failing = set(failing or ())
        self.group_fetches = 0
        self.invalidations = 0

    def _fetch_groups(self) -> List[APIGroup]:
        self.group_fetches += 1
        return list(self.groups)

    def _fetch_resources(self, group_version: str) -> APIResourceList:
        if group_version in self.failing:
            raise RuntimeError(f"the server is currently unable to handle the request ({group_version})")
        return self.resources[group_version]

    def invalidate(self) -> None:
        self.invalidations += 1
        super().invalidate()


def cluster_snapshot() -> FakeDiscovery:
    groups = [
        APIGroup(name="", versions=("v1",), preferred_version="v1"),
        APIGroup(name="apps", versions=("apps/v1",), preferred_version="apps/v1"),
        APIGroup(name="example.com", versions=("example.com/v1", "example.com/v1beta1"), preferred_version="example.com/v1"),
        APIGroup(name="other.io", versions=("other.io/v1",), preferred_version="other.io/v1"),
    ]
    resources = {
        "v1": APIResourceList(
            group_version="v1",
            resources=(
                APIResource(name="pods", kind="Pod", singular_name="pod", namespaced=True, short_names=("po",)),
                APIResource(name="pods/log", kind="Pod", namespaced=True),
                APIResource(name="namespaces", kind="Namespace", singular_name="namespace", short_names=("ns",)),
            ),
        ),
        "apps/v1": APIResourceList(
            group_version="apps/v1",
            resources=(
                APIResource(
                    name="deployments", kind="Deployment", singular_name="deployment", namespaced=True, short_names=("deploy",)
                ),
            ),
        ),
        "example.com/v1": APIResourceList(
            group_version="example.com/v1",
            resources=(APIResource(name="widgets", kind="Widget", singular_name="widget", namespaced=True),),
        ),
        "example.com/v1beta1": APIResourceList(
            group_version="example.com/v1beta1",
            resources=(APIResource(name="widgets", kind="Widget", singular_name="widget", namespaced=True),),
        ),
        "other.io/v1": APIResourceList(
            group_version="other.io/v1",
            resources=(APIResource(name="widgets", kind="Widget", singular_name="widget", namespaced=False),),
        ),
    }
    return FakeDiscovery(groups, resources)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def discovery() -> FakeDiscovery:
    return cluster_snapshot()
