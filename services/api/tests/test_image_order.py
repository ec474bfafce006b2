"""Tests for the image file ordering rules."""

from catalog.services.image_order import compare_image_files, sort_image_files


def test_main_then_numeric():
    files = ["x-2.jpg", "x-main.jpg", "x-10.jpg", "x-1.jpg"]
    assert sort_image_files(files) == ["x-main.jpg", "x-1.jpg", "x-2.jpg", "x-10.jpg"]


def test_numbered_before_unnumbered():
    assert sort_image_files(["b.jpg", "A.jpg", "a3.jpg"]) == ["a3.jpg", "A.jpg", "b.jpg"]


def test_main_match_is_case_insensitive():
    assert sort_image_files(["x-1.png", "X-MAIN.PNG"]) == ["X-MAIN.PNG", "x-1.png"]


def test_compare_is_antisymmetric():
    assert compare_image_files("x-main.jpg", "x-1.jpg") < 0
    assert compare_image_files("x-1.jpg", "x-main.jpg") > 0
    assert compare_image_files("x-9.jpg", "x-10.jpg") < 0
    assert compare_image_files("a.jpg", "a.jpg") == 0


def test_input_not_mutated():
    files = ["x-2.jpg", "x-1.jpg"]
    sort_image_files(files)
    assert files == ["x-2.jpg", "x-1.jpg"]
