[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "themekit"
version = "1.0.1"
description = "Local tooling for storefront themes: path filtering, change watching, asset files, template bundles and release management"
requires-python = ">=3.10"
keywords = ["themes", "storefront", "assets", "watcher", "releases"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Site Management",
]
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["themekit"]

[tool.pytest.ini_options]
addopts = "-ra"
