"""Tests for the import scripts (dry run only)."""

import pytest

from catalog.settings import ConfigError, get_settings
from scripts import import_catalog, import_iphone16, import_products
from scripts.import_runtime import import_runtime


def test_iphone16_group():
    group = import_iphone16.iphone16_group()
    assert group.public_id == "IPH16"
    assert group.primary_color == "Black"
    assert group.storages() == ["128GB", "256GB", "512GB"]
    assert group.declared_colors() == ["Black", "White", "Ultramarine", "Teal", "Pink"]


@pytest.mark.asyncio
async def test_iphone16_dry_run(tmp_path, capsys):
    (tmp_path / "iph16-black-main.jpg").write_bytes(b"x")
    (tmp_path / "iph16-midnight-2.jpg").write_bytes(b"x")

    await import_iphone16.main(["--dry-run", "--images-dir", str(tmp_path)])

    out = capsys.readouterr().out
    assert "'skus': 15" in out
    assert "'images': 2" in out


@pytest.mark.asyncio
async def test_import_products_dry_run(tmp_path, capsys):
    csv_path = tmp_path / "products.csv"
    csv_path.write_text(
        "brand,category,family,model,variant,title,public_id,color,storage,base_price,images\n"
        "Apple,Phones,iPhone,iPhone 16,Pro,Apple iPhone 16 Pro,IPH16PRO,White,256GB,1199,a.jpg\n"
        "Apple,Phones,iPhone,iPhone 16,Pro,Apple iPhone 16 Pro,IPH16PRO,Black,256GB,1199,\n"
    )
    (tmp_path / "a.jpg").write_bytes(b"x")

    await import_products.main(["--file", str(csv_path), "-i", str(tmp_path), "--dry-run"])

    out = capsys.readouterr().out
    assert "'products': 1" in out
    assert "'skus': 2" in out
    assert "'images': 1" in out


@pytest.mark.asyncio
async def test_import_catalog_dry_run(tmp_path, capsys):
    csv_dir = tmp_path / "csv"
    csv_dir.mkdir()
    (csv_dir / "Products.csv").write_text(
        "brand,category,family,model,variant,title,description,published,public_id,colors_list,primary_color\n"
        "Apple,Phones,iPhone,iPhone 16,Plus,Apple iPhone 16 Plus,,true,IPH16PLUS,Pink;Teal,Teal\n"
    )
    images_dir = tmp_path / "images"
    images_dir.mkdir()
    (images_dir / "iph16plus-pink-1.jpg").write_bytes(b"x")

    await import_catalog.main(["--csv-dir", str(csv_dir), "--images-dir", str(images_dir), "--dry-run"])

    out = capsys.readouterr().out
    assert "'images': 0" in out  # Images.csv missing is fine
    assert "'skus': 2" in out


@pytest.mark.asyncio
async def test_real_run_requires_database_url(tmp_path, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    with pytest.raises(ConfigError, match="DATABASE_URL"):
        async with import_runtime(str(tmp_path), dry_run=False):
            pass
