"""Тесты чтения контейнеров и форматирования их полей."""

from __future__ import annotations

import pytest
from docker.errors import APIError
from requests.exceptions import ReadTimeout

from container_source.docker_api import containers
from container_source.docker_api.exceptions import ContainerNotFoundError, DockerAPIError


def test_list_containers_returns_summaries(client, raw_client) -> None:
    raw_client.add_container("abc", "/web", "running")
    raw_client.add_container("def", "/db", "exited")

    rows = containers.list_containers(client)

    assert [row.id for row in rows] == ["abc", "def"]
    assert rows[0].primary_name == "/web"
    assert rows[1].state == "exited"


def test_list_containers_without_stopped(client, raw_client) -> None:
    raw_client.add_container("abc", "/web", "running")
    raw_client.add_container("def", "/db", "exited")
    rows = containers.list_containers(client, include_stopped=False)
    assert [row.id for row in rows] == ["abc"]


def test_list_containers_wraps_transport_errors(client, raw_client) -> None:
    raw_client.api.list_error = ReadTimeout("read timed out")
    with pytest.raises(DockerAPIError):
        containers.list_containers(client)


def test_inspect_container_reads_details(client, raw_client) -> None:
    raw_client.add_container("abc", "/web", "paused", image="redis:7", ports={"6379/tcp": None})

    details = containers.inspect_container(client, "abc")

    assert details.name == "/web"
    assert details.image == "redis:7"
    assert details.state == "paused"
    assert details.ports == {"6379/tcp": None}


def test_inspect_missing_container_raises_not_found(client) -> None:
    with pytest.raises(ContainerNotFoundError) as exc_info:
        containers.inspect_container(client, "gone")
    assert exc_info.value.container_id == "gone"


def test_inspect_other_errors_are_transient(client, raw_client) -> None:
    raw_client.api.inspect_results["abc"] = APIError("500 Server Error")
    with pytest.raises(DockerAPIError) as exc_info:
        containers.inspect_container(client, "abc")
    assert not isinstance(exc_info.value, ContainerNotFoundError)


def test_format_ports_exposed_only() -> None:
    assert containers.format_ports({"80/tcp": []}) == "80/tcp"
    assert containers.format_ports({"80/tcp": None}) == "80/tcp"


def test_format_ports_published() -> None:
    ports = {"80/tcp": [{"HostIp": "0.0.0.0", "HostPort": "8080"}]}
    assert containers.format_ports(ports) == "80/tcp -> 0.0.0.0:8080"


def test_format_ports_accepts_host_ip_spelling() -> None:
    ports = {"80/tcp": [{"HostIP": "127.0.0.1", "HostPort": "80"}]}
    assert containers.format_ports(ports) == "80/tcp -> 127.0.0.1:80"


def test_format_ports_groups_exposed_before_published() -> None:
    ports = {
        "443/tcp": [{"HostIp": "0.0.0.0", "HostPort": "8443"}, {"HostIp": "::", "HostPort": "8443"}],
        "53/udp": None,
        "80/tcp": [{"HostIp": "0.0.0.0", "HostPort": "8080"}],
        "9000/tcp": [],
    }
    lines = containers.format_ports(ports).split("\n")

    assert set(lines[:2]) == {"53/udp", "9000/tcp"}
    assert set(lines[2:]) == {
        "443/tcp -> 0.0.0.0:8443",
        "443/tcp -> :::8443",
        "80/tcp -> 0.0.0.0:8080",
    }


def test_format_ports_empty() -> None:
    assert containers.format_ports({}) == ""


def test_short_name() -> None:
    assert containers.short_name("/my_container") == "my_container"
    assert containers.short_name("my_container") == "my_container"
    assert containers.short_name("/parent/link") == "parent/link"
    assert containers.short_name("my/container") == "my/container"


def test_format_created_nanoseconds_utc() -> None:
    assert containers.format_created("2024-01-02T15:04:05.123456789Z") == "Tue Jan 2 15:04:05 2024"


def test_format_created_with_offset() -> None:
    assert containers.format_created("2006-01-02T15:04:05+07:00") == "Mon Jan 2 15:04:05 2006"


def test_format_created_unparsable_is_unchanged() -> None:
    assert containers.format_created("yesterday") == "yesterday"
    assert containers.format_created("") == ""
