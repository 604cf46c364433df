from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from toolgate.exceptions import AmbiguousResource, ResourceNotFound
from toolgate.providers.k8s_discovery import (
    DiscoveryClient,
    DiscoveryRESTMapper,
    GroupDiscoveryFailed,
    KubernetesDiscovery,
    ResourceDescriptor,
    parse_group_resource,
    parse_group_version,
)


def test_parse_group_version() -> None:
    assert parse_group_version("") == ("", "")
    assert parse_group_version("v1") == ("", "v1")
    assert parse_group_version("apps/v1") == ("apps", "v1")
    with pytest.raises(ValueError):
        parse_group_version("a/b/c")
    with pytest.raises(ValueError):
        parse_group_version("/v1")


def test_parse_group_resource() -> None:
    assert parse_group_resource("deployments.apps") == ("deployments", "apps")
    assert parse_group_resource("widgets.example.com") == ("widgets", "example.com")
    assert parse_group_resource("pods") == ("pods", "")


def test_descriptor_string_form() -> None:
    assert str(ResourceDescriptor(group="", version="v1", resource="pods")) == "v1/pods"
    assert str(ResourceDescriptor(group="apps", version="v1", resource="deployments")) == "apps/v1/deployments"


def test_discovery_is_memoized_until_invalidated(discovery) -> None:
    assert isinstance(discovery, DiscoveryClient)
    discovery.server_groups()
    discovery.server_groups()
    assert discovery.group_fetches == 1
    discovery.invalidate()
    discovery.server_groups()
    assert discovery.group_fetches == 2


def test_preferred_resources_reports_partial_failures(discovery) -> None:
    discovery.failing.add("apps/v1")
    with pytest.raises(GroupDiscoveryFailed) as exc:
        discovery.server_preferred_resources()
    assert set(exc.value.failed) == {"apps/v1"}
    assert [lst.group_version for lst in exc.value.partial] == ["v1", "example.com/v1", "other.io/v1"]


def test_mapper_prefers_preferred_version(discovery) -> None:
    mapper = DiscoveryRESTMapper(discovery)
    found = mapper.resource_for("example.com", "", "widgets")
    assert str(found) == "example.com/v1/widgets"
    assert mapper.kind_for(found) == "Widget"
    assert str(mapper.rest_mapping("example.com", "Widget").resource) == "example.com/v1/widgets"


def test_mapper_errors(discovery) -> None:
    mapper = DiscoveryRESTMapper(discovery)
    with pytest.raises(AmbiguousResource):
        mapper.resource_for("", "", "widgets")
    with pytest.raises(ResourceNotFound):
        mapper.resource_for("", "", "gadgets")
    with pytest.raises(ResourceNotFound):
        mapper.rest_mapping("apps", "Widget")
    with pytest.raises(ResourceNotFound):
        mapper.kind_for(ResourceDescriptor(group="x", version="v1", resource="ys"))


def test_kubernetes_discovery_maps_client_responses() -> None:
    api_client = MagicMock()
    api_client.call_api.return_value = SimpleNamespace(
        resources=[
            SimpleNamespace(
                name="deployments",
                kind="Deployment",
                singular_name="deployment",
                namespaced=True,
                short_names=["deploy"],
                verbs=["get", "list"],
            ),
            SimpleNamespace(name="deployments/scale", kind="Scale", singular_name="", namespaced=True, short_names=None, verbs=None),
        ]
    )
    d = KubernetesDiscovery(api_client)
    listing = d.server_resources_for_group_version("apps/v1")

    assert listing.group_version == "apps/v1"
    assert [r.name for r in listing.resources] == ["deployments", "deployments/scale"]
    assert listing.resources[0].short_names == ("deploy",)
    assert listing.resources[1].is_subresource
    path = api_client.call_api.call_args[0][0]
    assert path == "/apis/apps/v1"

    d.server_resources_for_group_version("v1")
    assert api_client.call_api.call_args[0][0] == "/api/v1"
