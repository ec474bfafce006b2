"""Tests for CSV parsing, grouping, image merging and SKU expansion."""

import pytest

from catalog.services.catalog_rows import (
    CatalogRowError,
    CsvImageGroup,
    PriceSpec,
    ProductGroup,
    ProductRow,
    build_sku_specs,
    default_price_for_variant,
    effective_price,
    group_image_rows,
    group_rows,
    merge_image_sources,
    parse_image_rows,
    parse_number,
    parse_product_rows,
    read_csv_rows,
    split_list,
    to_bool,
)
from catalog.services.image_discovery import DiscoveredImageSet


def _row(**kwargs) -> ProductRow:
    base = {"brand": "Apple", "category": "Phones", "family": "iPhone", "model": "iPhone 16", "title": "Apple iPhone 16"}
    base.update(kwargs)
    return ProductRow(**base)


def _group(*rows: ProductRow) -> ProductGroup:
    return group_rows(rows)[0]


class TestParsingHelpers:
    """Tests for cell parsing."""

    def test_to_bool(self):
        assert to_bool("TRUE") is True
        assert to_bool("yes") is True
        assert to_bool("0") is False
        assert to_bool("", default=True) is True
        assert to_bool(None) is False

    def test_parse_number(self):
        assert parse_number("1,299") == 1299.0
        assert parse_number(" 12.5 ") == 12.5
        assert parse_number("") is None
        assert parse_number("abc", default=0) == 0

    def test_parse_number_rejects_non_finite(self):
        assert parse_number("nan") is None
        assert parse_number("inf") is None
        assert parse_number("-Infinity", default=0) == 0

    def test_split_list(self):
        assert split_list("a; b|c,d") == ["a", "b", "c", "d"]
        assert split_list("Black;;White ", ";") == ["Black", "White"]
        assert split_list(None) == []


class TestReadCsvRows:
    """Tests for reading CSV files with pandas."""

    def test_reads_trimmed_strings(self, tmp_path):
        path = tmp_path / "Products.csv"
        path.write_text(
            "brand, title ,base_price\n"
            "Apple, Apple iPhone 16 ,0799\n"
            "\n"
            ",,\n"
            "Apple,Apple iPhone 16 Pro,\n",
            encoding="utf-8-sig",
        )
        rows = read_csv_rows(path)
        assert rows == [
            {"brand": "Apple", "title": "Apple iPhone 16", "base_price": "0799", "row_number": "2"},
            {"brand": "Apple", "title": "Apple iPhone 16 Pro", "base_price": "", "row_number": "5"},
        ]

    def test_row_errors_name_the_source_line(self, tmp_path):
        path = tmp_path / "Products.csv"
        path.write_text(
            "brand,category,title\n"
            "Apple,Phones,Apple iPhone 16\n"
            "\n"
            ",,\n"
            "Apple,Phones,\n",
            encoding="utf-8",
        )
        with pytest.raises(CatalogRowError, match="Row 5: missing title"):
            parse_product_rows(read_csv_rows(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_csv_rows(tmp_path / "missing.csv")
        assert read_csv_rows(tmp_path / "missing.csv", missing_ok=True) == []

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")
        assert read_csv_rows(path) == []


class TestRows:
    """Tests for row validation and grouping."""

    def test_missing_required_fields(self):
        with pytest.raises(CatalogRowError, match="Row 3: missing title"):
            parse_product_rows([{"brand": "Apple", "category": "Phones", "title": "X"}, {"brand": "Apple", "category": "Phones"}])

    def test_unknown_columns_ignored(self):
        rows = parse_product_rows([{"brand": "Apple", "category": "Phones", "title": "X", "sku_notes": "n/a"}])
        assert rows[0].title == "X"
        assert rows[0].row_number == 2

    def test_group_by_composite_key_keeps_order(self):
        rows = [
            _row(color="Black"),
            _row(title="Apple iPhone 16 Pro", variant="Pro"),
            _row(color="White"),
        ]
        groups = group_rows(rows)
        assert len(groups) == 2
        assert [r.color for r in groups[0].rows] == ["Black", "White"]
        assert groups[1].first.variant == "Pro"

    def test_public_id_generated_when_missing(self):
        assert _group(_row()).public_id == "IPHONE-IPHONE-16-APPLE-IPHONE-16"
        assert _group(_row(public_id="IPH16")).public_id == "IPH16"

    def test_record(self):
        record = _group(_row(public_id="IPH16", published="true", description="")).record()
        assert record.public_id == "IPH16"
        assert record.published is True
        assert record.description is None
        assert record.variant is None

    def test_declared_colors(self):
        group = _group(_row(colors_list="Black;White"), _row(color="Teal"), _row(color="black"))
        assert group.declared_colors() == ["Black", "White", "Teal"]

    def test_storages_primary_first(self):
        group = _group(_row(storages_list="128GB;256GB;512GB", primary_storage="256GB"))
        assert group.storages() == ["256GB", "128GB", "512GB"]

    def test_csv_images_by_row_color(self):
        group = _group(_row(images="a.jpg;b.jpg"), _row(color="Black", images="https://x.test/b1.jpg"))
        images = group.csv_images()
        assert images.common == ["a.jpg", "b.jpg"]
        assert images.by_color == {"Black": ["https://x.test/b1.jpg"]}

    def test_image_rows(self):
        rows = parse_image_rows(
            [
                {"product_public_id": "IPH16", "file_or_url": "c.jpg", "color": "Common"},
                {"product_public_id": "IPH16", "file_or_url": "b.jpg", "color": "Black"},
                {"product_public_id": "", "file_or_url": "x.jpg"},
                {"product_public_id": "IPH16PRO", "file_or_url": "p.jpg", "color": ""},
            ]
        )
        assert len(rows) == 3
        assert rows[0].is_common
        assert rows[2].is_common
        assert not rows[1].is_common

        grouped = group_image_rows(rows)
        assert grouped["IPH16"].common == ["c.jpg"]
        assert grouped["IPH16"].by_color == {"Black": ["b.jpg"]}
        assert grouped["IPH16PRO"].common == ["p.jpg"]


class TestMergeImageSources:
    """Tests for merging CSV-declared and discovered images."""

    def test_csv_first_discovered_appended(self):
        csv_images = CsvImageGroup(common=["a.jpg"], by_color={"black": ["b1.jpg"]})
        discovered = DiscoveredImageSet(
            hero="h_main_main.jpg",
            common=["A.JPG", "c.jpg"],
            by_color={"Black": ["B1.jpg", "b2.jpg"], "Teal": ["t.jpg"]},
            discovered_colors={"Black", "Teal"},
        )
        merged = merge_image_sources(csv_images, discovered)

        assert merged.hero == "h_main_main.jpg"
        assert merged.common == ["a.jpg", "c.jpg"]
        assert merged.by_color == {"black": ["b1.jpg", "b2.jpg"], "Teal": ["t.jpg"]}

    def test_without_csv_images(self):
        merged = merge_image_sources(None, DiscoveredImageSet(common=["c.jpg"]))
        assert merged.common == ["c.jpg"]
        assert merged.hero is None


class TestPricing:
    """Tests for prices and discounts."""

    def test_default_price_for_variant(self):
        assert default_price_for_variant("Pro Max") == 1299
        assert default_price_for_variant("pro") == 1199
        assert default_price_for_variant("Plus") == 899
        assert default_price_for_variant(None) == 799

    def test_effective_price(self):
        assert effective_price(1000) == 1000
        assert effective_price(1000, discount_amount=150) == 850
        assert effective_price(1000, discount_percent=10) == pytest.approx(900)

    def test_both_discounts_rejected(self):
        with pytest.raises(CatalogRowError):
            PriceSpec(currency="USD", base_price=100, discount_percent=5, discount_amount=5)

    def test_negative_price_rejected(self):
        with pytest.raises(CatalogRowError):
            PriceSpec(currency="USD", base_price=-1)


class TestBuildSkuSpecs:
    """Tests for SKU expansion."""

    def test_colors_times_storages(self):
        group = _group(
            _row(
                public_id="IPH16",
                colors_list="Black;White;Ultramarine;Teal;Pink",
                primary_color="Black",
                storages_list="128GB;256GB;512GB",
                primary_storage="128GB",
                base_price="799",
            )
        )
        specs = build_sku_specs(group)

        assert len(specs) == 15
        assert specs[0].sku_code == "IPH16-NEW-128GB-BLACK"
        assert specs[0].attributes == {"storage": "128GB", "color": "Black"}
        assert len({s.sku_code for s in specs}) == 15
        assert all(s.price.base_price == 799 for s in specs)
        assert all(s.quantity == 5 for s in specs)

    def test_discovered_color_gets_sku_without_images(self):
        group = _group(_row(public_id="IPH16", colors_list="Black"))
        specs = build_sku_specs(group, {"Gold"})
        assert [s.sku_code for s in specs] == ["IPH16-NEW-BLACK", "IPH16-NEW-GOLD"]

    def test_colored_rows_keep_their_values(self):
        group = _group(
            _row(public_id="IPH16", color="Black", storage="128GB", base_price="999", quantity="3"),
            _row(public_id="IPH16", color="White", storage="128GB", base_price="1,049", currency="eur"),
        )
        specs = build_sku_specs(group, {"Teal"})

        by_code = {s.sku_code: s for s in specs}
        assert set(by_code) == {"IPH16-NEW-128GB-BLACK", "IPH16-NEW-128GB-WHITE", "IPH16-NEW-128GB-TEAL"}
        assert by_code["IPH16-NEW-128GB-BLACK"].quantity == 3
        assert by_code["IPH16-NEW-128GB-WHITE"].price.base_price == 1049
        assert by_code["IPH16-NEW-128GB-WHITE"].price.currency == "EUR"
        # Uncovered colors are cloned from the first row
        assert by_code["IPH16-NEW-128GB-TEAL"].price.base_price == 999

    def test_variant_default_price(self):
        group = _group(_row(public_id="IPH16PM", variant="Pro Max"))
        specs = build_sku_specs(group)
        assert len(specs) == 1
        assert specs[0].sku_code == "IPH16PM-NEW"
        assert specs[0].price.base_price == 1299
        assert specs[0].price.currency == "USD"

    def test_non_finite_cells_fall_back_to_defaults(self):
        group = _group(_row(public_id="IPH16", variant="Pro", base_price="inf", quantity="nan"))
        specs = build_sku_specs(group)
        assert specs[0].price.base_price == 1199
        assert specs[0].quantity == 5

    def test_second_hand(self):
        specs = build_sku_specs(_group(_row(public_id="IPH16", condition="second_hand", color="Pink")))
        assert specs[0].sku_code == "IPH16-USED-PINK"
        assert specs[0].condition == "second_hand"

    def test_duplicate_codes_keep_first(self):
        group = _group(
            _row(public_id="IPH16", color="Black", base_price="1"),
            _row(public_id="IPH16", color="Black", base_price="2"),
        )
        specs = build_sku_specs(group)
        assert len(specs) == 1
        assert specs[0].price.base_price == 1

    def test_invalid_rows(self):
        with pytest.raises(CatalogRowError, match="unknown condition"):
            build_sku_specs(_group(_row(condition="refurbished")))
        with pytest.raises(CatalogRowError, match="negative quantity"):
            build_sku_specs(_group(_row(quantity="-1")))
        with pytest.raises(CatalogRowError, match="Only one of"):
            build_sku_specs(_group(_row(discount_percent="10", discount_amount="5")))

    def test_defaults_injected(self):
        specs = build_sku_specs(_group(_row()), default_currency="eur", default_quantity=0)
        assert specs[0].price.currency == "EUR"
        assert specs[0].quantity == 0
