import os

import pytest

from themekit.paths import is_project_directory, path_in_project, path_to_project

ROOT = os.path.join("long", "path", "to")


@pytest.mark.parametrize(
    "parts, expected",
    [
        (("config.yml",), ""),
        (("assets", "logo.png"), "assets/logo.png"),
        (("node_modules", "assets", "logo.png"), ""),
        (("templates", "customers", "test.liquid"), "templates/customers/test.liquid"),
        (("config", "test.liquid"), "config/test.liquid"),
        (("layout", "test.liquid"), "layout/test.liquid"),
        (("snippets", "test.liquid"), "snippets/test.liquid"),
        (("templates", "test.liquid"), "templates/test.liquid"),
        (("locales", "test.liquid"), "locales/test.liquid"),
        (("sections", "test.liquid"), "sections/test.liquid"),
    ],
)
def test_path_to_project(parts, expected):
    assert path_to_project(ROOT, os.path.join(ROOT, *parts)) == expected


@pytest.mark.parametrize(
    "name, expected",
    [
        ("assets", True),
        ("config", True),
        ("content", True),
        ("css", False),
        ("frame", True),
        ("layout", True),
        ("locales", True),
        ("misc", False),
        ("node_modules", False),
        ("pages", True),
        ("sections", True),
        ("snippets", True),
        ("templates", True),
        ("templates/customers", True),
    ],
)
def test_is_project_directory(name, expected):
    assert is_project_directory(ROOT, os.path.join(ROOT, name)) is expected


def test_empty_path_is_not_project_directory():
    assert is_project_directory(ROOT, "") is False


@pytest.mark.parametrize(
    "parts, expected",
    [
        (("config.yml",), False),
        (("misc", "other.html"), False),
        (("assets", "logo.png"), True),
        (("node_modules", "assets", "logo.png"), False),
        (("templates", "customers", "test.liquid"), True),
        (("config", "test.liquid"), True),
        (("layout", "test.liquid"), True),
        (("snippets", "test.liquid"), True),
        (("templates", "test.liquid"), True),
        (("locales", "test.liquid"), True),
        (("sections", "test.liquid"), True),
    ],
)
def test_path_in_project(parts, expected):
    assert path_in_project(ROOT, os.path.join(ROOT, *parts)) is expected


def test_empty_path_not_in_project():
    assert path_in_project(ROOT, "") is False