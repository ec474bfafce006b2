"""Tests for filename-based image classification."""

import re

from catalog.services.image_discovery import (
    DiscoveredImageBuilder,
    DiscoveryConfig,
    PrefixedStrategy,
    TokenScannedStrategy,
    classify_image_paths,
    list_image_files,
    normalize_discovered_color,
    resolve_prefix,
    resolve_strategy,
)


class TestResolvePrefix:
    """Tests for prefix lookup."""

    def test_table(self):
        assert resolve_prefix("IPH16PRO") == "iph16pro"
        assert resolve_prefix("IPH16") == "iph16"

    def test_title_phrase_most_specific_first(self):
        assert resolve_prefix("CUSTOM", "Apple iPhone 16 Pro Max 256GB") == "iph16promax"
        assert resolve_prefix("CUSTOM", "Apple iPhone 16 Plus") == "iph16plus"

    def test_fallback_lowercase_public_id(self):
        assert resolve_prefix("MBA13-M3", "MacBook Air") == "mba13-m3"


class TestResolveStrategy:
    """Tests for per-product strategy selection."""

    def test_base_model_is_token_scanned(self):
        strategy = resolve_strategy("IPH16")
        assert isinstance(strategy, TokenScannedStrategy)
        assert strategy.kind == "token_scanned"
        assert strategy.prefix == "iph16"

    def test_other_products_prefixed(self):
        strategy = resolve_strategy("IPH16PRO")
        assert isinstance(strategy, PrefixedStrategy)
        assert not isinstance(strategy, TokenScannedStrategy)
        assert strategy.kind == "prefixed"

    def test_token_scan_disabled_by_config(self):
        config = DiscoveryConfig(base_model_public_id=None)
        assert resolve_strategy("IPH16", config=config).kind == "prefixed"


class TestClassifyPrefixed:
    """Tests for prefix-named files."""

    PATHS = [
        "iph16pro-main_main.jpg",
        "iph16pro-common-2.jpg",
        "iph16pro-common-1.jpg",
        "iph16pro-white2.jpg",
        "iph16pro-white-main.jpg",
        "pro/iph16pro-desert-titanium-1.jpg",
        "iph16-black-main.jpg",
        "random.jpg",
    ]

    def test_buckets(self):
        result = classify_image_paths(self.PATHS, "IPH16PRO")

        assert result.hero == "iph16pro-main_main.jpg"
        assert result.common == ["iph16pro-common-1.jpg", "iph16pro-common-2.jpg"]
        assert result.by_color == {
            "White": ["iph16pro-white-main.jpg", "iph16pro-white2.jpg"],
            "Desert Titanium": ["pro/iph16pro-desert-titanium-1.jpg"],
        }
        assert result.discovered_colors == {"White", "Desert Titanium"}
        assert result.total == 6

    def test_unrelated_files_dropped(self):
        result = classify_image_paths(["iph16-black-main.jpg", "random.jpg"], "IPH16PRO")
        assert result.hero is None
        assert result.common == []
        assert result.by_color == {}

    def test_first_hero_wins(self):
        result = classify_image_paths(
            ["iph16pro-main_main.jpg", "iph16pro-alt_main_main.jpg"],
            "IPH16PRO",
        )
        assert result.hero == "iph16pro-main_main.jpg"
        assert result.by_color == {}

    def test_prefix_needs_separator(self):
        # "iph16" must not claim "iph16pro-..." files
        result = classify_image_paths(["iph16pro-white-main.jpg"], "IPH16")
        assert result.by_color == {}

    def test_injected_tables(self):
        config = DiscoveryConfig(
            prefix_by_public_id={"MBA13": "mba13"},
            title_prefix_phrases=(),
            color_aliases={},
            base_model_public_id=None,
        )
        result = classify_image_paths(["mba13-silver-1.jpg", "iph16-black-1.jpg"], "MBA13", config=config)
        assert result.by_color == {"Silver": ["mba13-silver-1.jpg"]}


class TestClassifyBaseModel:
    """Tests for the folder/token fallback of the base iPhone 16."""

    def test_token_scan_in_hint_directory(self):
        paths = [
            "iphone 16/iPhone16 Ultramarine 3.png",
            "iphone 16/iPhone 16 Pro Black.jpg",
            "iph16-black-main.jpg",
        ]
        result = classify_image_paths(paths, "IPH16")

        assert result.by_color == {
            "Ultramarine": ["iphone 16/iPhone16 Ultramarine 3.png"],
            "Black": ["iph16-black-main.jpg"],
        }

    def test_token_scan_outside_hint_directory_ignored(self):
        result = classify_image_paths(["phones/iPhone16 Teal.png"], "IPH16")
        assert result.by_color == {}

    def test_token_scan_only_for_base_model(self):
        result = classify_image_paths(["iphone 16/iPhone16 Teal.png"], "IPH16PLUS")
        assert result.by_color == {}

    def test_midnight_merges_into_black(self):
        paths = [
            "iph16-black-main.jpg",
            "iph16-midnight-1.jpg",
            "iphone 16/iPhone 16 Midnight.jpg",
        ]
        result = classify_image_paths(paths, "IPH16")

        assert set(result.by_color) == {"Black"}
        assert result.by_color["Black"] == [
            "iph16-black-main.jpg",
            "iph16-midnight-1.jpg",
            "iphone 16/iPhone 16 Midnight.jpg",
        ]
        assert result.discovered_colors == {"Black"}

    def test_hero_and_common_in_hint_directory(self):
        paths = ["iphone 16/hero_main_main.jpg", "iphone 16/iPhone16-common-1.png"]
        result = classify_image_paths(paths, "IPH16")
        assert result.hero == "iphone 16/hero_main_main.jpg"
        assert result.common == ["iphone 16/iPhone16-common-1.png"]


def test_normalize_discovered_color():
    assert normalize_discovered_color("IPH16", "Midnight") == "Black"
    assert normalize_discovered_color("IPH16PRO", "Midnight") == "Midnight"


def test_builder_finalize_sorts_buckets():
    builder = DiscoveredImageBuilder()
    assert builder.set_hero("a_main_main.jpg") is True
    assert builder.set_hero("b_main_main.jpg") is False
    builder.add_common("c-2.jpg")
    builder.add_common("c-1.jpg")
    builder.add_to_color("Pink", "p-3.jpg")
    builder.add_to_color("Pink", "p-main.jpg")

    result = builder.finalize()
    assert result.hero == "a_main_main.jpg"
    assert result.common == ["c-1.jpg", "c-2.jpg"]
    assert result.by_color == {"Pink": ["p-main.jpg", "p-3.jpg"]}


class TestFilesystem:
    """Tests against a real directory tree."""

    def test_list_image_files(self, tmp_path):
        (tmp_path / "iphone 16").mkdir()
        (tmp_path / "iphone 16" / "iPhone16 Pink 1.PNG").write_bytes(b"x")
        (tmp_path / "iph16pro-white-main.webp").write_bytes(b"x")
        (tmp_path / "notes.txt").write_text("not an image")

        assert list_image_files(tmp_path) == ["iph16pro-white-main.webp", "iphone 16/iPhone16 Pink 1.PNG"]

    def test_missing_root(self, tmp_path):
        assert list_image_files(tmp_path / "nope") == []


def test_default_tables_are_not_shared_state():
    a = DiscoveryConfig()
    b = DiscoveryConfig()
    assert a.prefix_by_public_id is not b.prefix_by_public_id
    assert isinstance(a.base_model_directory_re, re.Pattern)
