"""teeshop: in-memory t-shirt storefront backend."""

__version__ = "0.1.0"
