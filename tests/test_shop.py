"""
Tests for shop domain normalization and token masking.
"""

import pytest

from app.utils.shop import mask_token, normalize_shop, shop_from_dest, shop_handle


class TestNormalizeShop:
    """Tests for normalize_shop."""

    def test_appends_suffix_to_handle(self):
        assert normalize_shop("foo") == "foo.myshopify.com"

    def test_keeps_host_of_full_domain(self):
        assert normalize_shop("foo.myshopify.com/admin") == "foo.myshopify.com"

    def test_trims_lowercases_and_strips_trailing_slash(self):
        assert normalize_shop("  Foo.MyShopify.com/ ") == "foo.myshopify.com"
        assert normalize_shop("FOO/") == "foo.myshopify.com"

    @pytest.mark.parametrize("raw", ["", "   ", None, 42, ["foo"]])
    def test_empty_or_non_string_is_empty(self, raw):
        assert normalize_shop(raw) == ""

    @pytest.mark.parametrize("raw", [
        "foo",
        "Foo.myshopify.com",
        "foo.myshopify.com/admin/apps",
        "bar-baz/",
        "foo/bar",
    ])
    def test_idempotent(self, raw):
        once = normalize_shop(raw)
        assert normalize_shop(once) == once


class TestShopFromDest:
    """Tests for reading the shop out of a dest claim."""

    def test_strips_scheme_and_path(self):
        assert shop_from_dest("https://Foo.myshopify.com/admin") == "foo.myshopify.com"
        assert shop_from_dest("http://foo.myshopify.com") == "foo.myshopify.com"

    def test_bare_domain(self):
        assert shop_from_dest("foo.myshopify.com") == "foo.myshopify.com"

    def test_missing(self):
        assert shop_from_dest(None) == ""
        assert shop_from_dest("") == ""

    def test_handle(self):
        assert shop_handle("foo.myshopify.com") == "foo"


class TestMaskToken:
    """Tokens must never be shown in full."""

    def test_long_token_keeps_only_edges(self):
        masked = mask_token("shpat_0123456789abcdef")
        assert masked == "shpat_...cdef"
        assert "0123456789" not in masked

    def test_short_and_empty(self):
        assert mask_token("abc") == "***"
        assert mask_token(None) == "<none>"
