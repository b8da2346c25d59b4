"""
Tests CookiePolicy: immutable cookie template and Set-Cookie rendering.
"""

import dataclasses
from datetime import datetime, timezone

import pytest

from signet.sessions.policy import CookiePolicy

from conftest import NOW


class TestCreate:

    def test_defaults(self):
        cookie = CookiePolicy.create("slsession")
        assert cookie.name == "slsession"
        assert cookie.value is None
        assert cookie.domain is None
        assert cookie.path is None
        assert cookie.expires == 0
        assert cookie.max_age == 0
        assert cookie.secure is False
        assert cookie.http_only is False
        assert cookie.same_site is None

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            CookiePolicy.create("")

    def test_frozen(self):
        cookie = CookiePolicy.create("a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            cookie.value = "x"


class TestDerivations:

    def test_with_methods_return_copies(self):
        template = CookiePolicy.create("a")
        derived = (
            template
            .with_value("v")
            .with_domain("example.com")
            .with_path("/app")
            .with_expires(NOW)
            .with_max_age(60)
            .with_secure()
            .with_http_only()
            .with_same_site("strict")
        )

        assert template == CookiePolicy.create("a")
        assert derived.value == "v"
        assert derived.domain == "example.com"
        assert derived.path == "/app"
        assert derived.expires == NOW
        assert derived.max_age == 60
        assert derived.secure is True
        assert derived.http_only is True
        assert derived.same_site == "Strict"

    def test_flags_can_be_turned_off(self):
        cookie = CookiePolicy.create("a").with_secure().with_http_only()
        assert cookie.with_secure(False).secure is False
        assert cookie.with_http_only(False).http_only is False

    def test_expires_from_datetime(self):
        moment = datetime.fromtimestamp(NOW, tz=timezone.utc)
        assert CookiePolicy.create("a").with_expires(moment).expires == NOW

    def test_expires_from_float(self):
        assert CookiePolicy.create("a").with_expires(NOW + 0.9).expires == NOW

    def test_invalid_same_site(self):
        with pytest.raises(ValueError):
            CookiePolicy.create("a").with_same_site("sometimes")

    def test_same_site_can_be_cleared(self):
        cookie = CookiePolicy.create("a").with_same_site("Lax").with_same_site(None)
        assert cookie.same_site is None


class TestHeader:

    def test_minimal(self):
        assert CookiePolicy.create("a", "1").to_header() == "a=1"

    def test_unset_value_renders_empty(self):
        assert CookiePolicy.create("a").to_header() == "a="

    def test_all_attributes(self):
        cookie = (
            CookiePolicy.create("slsession", "tok")
            .with_domain("foo.bar")
            .with_path("/yadda")
            .with_expires(NOW)
            .with_max_age(123)
            .with_secure()
            .with_http_only()
            .with_same_site("Lax")
        )
        assert cookie.to_header() == (
            "slsession=tok; Domain=foo.bar; Path=/yadda; "
            "Expires=Tue, 14 Nov 2023 22:13:20 GMT; Max-Age=123; "
            "Secure; HttpOnly; SameSite=Lax"
        )

    def test_str(self):
        cookie = CookiePolicy.create("a", "1").with_http_only()
        assert str(cookie) == "a=1; HttpOnly"
