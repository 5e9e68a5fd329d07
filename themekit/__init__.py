"""Local tooling for storefront themes: path filtering, watching, assets, bundles and releases."""

__version__ = "1.0.1"