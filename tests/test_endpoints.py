"""Tests for endpoint validation and resolution."""

import io
import json
import threading

import pytest

from qiniu_artifacts.core.endpoints import (
    DEFAULT_API_HOST,
    DEFAULT_RS_HOST,
    DEFAULT_UC_HOST,
    EndpointContext,
    EndpointSet,
    check_host,
    get_endpoint_context,
    is_valid_host,
    resolve_endpoints,
)
from qiniu_artifacts.exceptions import ConfigurationError, MalformedEndpointError
from qiniu_artifacts.observability import enable_structured_logging


class TestHostSyntax:
    @pytest.mark.parametrize("host", [
        "api.qiniu.com",
        "localhost",
        "cdn-1.example.com",
        "10.0.0.8",
        "uc.internal:8080",
    ])
    def test_valid_hosts(self, host):
        assert is_valid_host(host)

    @pytest.mark.parametrize("host", [
        "http://api.qiniu.com",
        "api.qiniu.com/path",
        "user@api.qiniu.com",
        "bad host",
        "-leading.example.com",
        "trailing-.example.com",
        "example..com",
        "host:99999",
        "host:0",
        "under_score.com",
    ])
    def test_invalid_hosts(self, host):
        assert not is_valid_host(host)

    def test_check_host_strips_and_allows_empty(self):
        assert check_host("api_domain", "  api.example.com ") == "api.example.com"
        assert check_host("api_domain", "") == ""
        assert check_host("api_domain", None) == ""

    def test_check_host_names_role(self):
        with pytest.raises(MalformedEndpointError) as exc_info:
            check_host("rs_domain", "http://rs.example.com")

        assert exc_info.value.role == "rs_domain"
        assert exc_info.value.value == "http://rs.example.com"
        assert isinstance(exc_info.value, ConfigurationError)


class TestEndpointSet:
    def test_defaults_are_empty(self):
        endpoints = EndpointSet()
        assert endpoints.api_domain == ""
        assert endpoints.download_domain == ""
        assert endpoints.use_https is False

    def test_malformed_download_domain_rejected(self):
        with pytest.raises(MalformedEndpointError, match="download_domain"):
            EndpointSet(download_domain="cdn.example.com/artifacts")

    def test_is_immutable(self):
        endpoints = EndpointSet(api_domain="api.example.com")
        with pytest.raises(AttributeError):
            endpoints.api_domain = "other.example.com"


class TestEndpointContext:
    def test_empty_roles_use_provider_defaults(self, context):
        resolved = context.resolve(EndpointSet(download_domain="cdn.example.com"))

        assert resolved.api_host == DEFAULT_API_HOST
        assert resolved.rs_host == DEFAULT_RS_HOST
        assert resolved.uc_host == DEFAULT_UC_HOST
        assert resolved.download_domain == "cdn.example.com"

    def test_custom_host_is_promoted_for_later_calls(self, context):
        context.resolve(EndpointSet(api_domain="api.internal", uc_domain="uc.internal"))

        later = context.resolve(EndpointSet())

        assert later.api_host == "api.internal"
        assert later.uc_host == "uc.internal"
        assert later.rs_host == DEFAULT_RS_HOST
        assert context.defaults() == {"api": "api.internal", "rs": DEFAULT_RS_HOST, "uc": "uc.internal"}

    def test_last_writer_wins(self, context):
        context.resolve(EndpointSet(rs_domain="rs-1.internal"))
        context.resolve(EndpointSet(rs_domain="rs-2.internal"))

        assert context.resolve(EndpointSet()).rs_host == "rs-2.internal"

    def test_contexts_are_independent(self):
        first = EndpointContext()
        second = EndpointContext()

        first.resolve(EndpointSet(api_domain="api.internal"))

        assert second.resolve(EndpointSet()).api_host == DEFAULT_API_HOST

    def test_promotion_is_logged(self, context):
        output = io.StringIO()
        enable_structured_logging(output=output)

        context.resolve(EndpointSet(api_domain="api.internal"))
        context.resolve(EndpointSet(api_domain="api.internal"))

        events = [json.loads(line) for line in output.getvalue().splitlines()]
        assert len(events) == 1
        assert events[0]["event"] == "endpoint_promoted"
        assert events[0]["old_host"] == DEFAULT_API_HOST
        assert events[0]["new_host"] == "api.internal"

    def test_concurrent_promotions_leave_one_consistent_value(self, context):
        hosts = [f"api-{i}.internal" for i in range(20)]
        threads = [
            threading.Thread(target=context.resolve, args=(EndpointSet(api_domain=host),))
            for host in hosts
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert context.defaults()["api"] in hosts

    def test_shared_context_is_a_singleton(self):
        assert get_endpoint_context() is get_endpoint_context()

    def test_resolve_endpoints_uses_given_context(self, context):
        resolved = resolve_endpoints(EndpointSet(uc_domain="uc.internal"), context)
        assert resolved.uc_host == "uc.internal"
        assert context.defaults()["uc"] == "uc.internal"


class TestResolvedEndpoints:
    def test_scheme_follows_use_https(self, context):
        plain = context.resolve(EndpointSet())
        secure = context.resolve(EndpointSet(use_https=True))

        assert plain.api_url("/v6/domain/list") == f"http://{DEFAULT_API_HOST}/v6/domain/list"
        assert secure.api_url("/v6/domain/list") == f"https://{DEFAULT_API_HOST}/v6/domain/list"
        assert secure.uc_url() == f"https://{DEFAULT_UC_HOST}"
        assert secure.rs_url("/stat") == f"https://{DEFAULT_RS_HOST}/stat"

    def test_download_url(self, context):
        resolved = context.resolve(EndpointSet(download_domain="cdn.example.com", use_https=True))

        assert resolved.download_url("/builds/app.jar") == "https://cdn.example.com/builds/app.jar"

    def test_with_download_domain_keeps_hosts(self, context):
        resolved = context.resolve(EndpointSet(api_domain="api.internal"))

        updated = resolved.with_download_domain("cdn.example.com")

        assert updated.api_host == "api.internal"
        assert updated.download_domain == "cdn.example.com"
        assert resolved.download_domain == ""
