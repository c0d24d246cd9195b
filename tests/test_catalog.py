"""Tests for catalog filtering, sorting and pagination."""

import pytest

from teeshop.catalog import ProductFilter, catalog_facets, query_products, sort_products
from teeshop.errors import InvalidInputError


class TestProductFilter:
    def test_no_filter_returns_everything_in_insertion_order(self, catalog_store):
        result = catalog_store.list_products()
        assert result.total == 20
        assert [p.id for p in result.products] == list(range(1, 21))

    def test_category(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(category="Graphic"))
        assert result.total == 10
        assert all(p.category == "Graphic" for p in result.products)

    def test_category_is_exact(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(category="graphic"))
        assert result.total == 0

    def test_in_stock(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(in_stock=True))
        assert result.total == 19
        assert 20 not in [p.id for p in result.products]

    def test_out_of_stock_only(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(in_stock=False))
        assert [p.id for p in result.products] == [20]

    def test_color_membership(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(color="Red"))
        assert result.total == 7
        assert all("Red" in p.available_colors for p in result.products)

    def test_color_is_case_sensitive(self, catalog_store):
        assert catalog_store.list_products(ProductFilter(color="red")).total == 0

    def test_size_membership(self, catalog_store):
        assert catalog_store.list_products(ProductFilter(size="M")).total == 20
        assert catalog_store.list_products(ProductFilter(size="XXL")).total == 0

    def test_gender(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(gender="women"))
        assert result.total == 7
        assert all(p.gender == "women" for p in result.products)

    def test_filters_are_conjunctive(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(category="Classic", gender="men"))
        assert [p.id for p in result.products] == [1, 7, 13, 19]

    def test_no_match_is_empty_not_error(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(category="Nope", color="Red"))
        assert result.products == []
        assert result.total == 0


class TestSorting:
    def test_price_ascending(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(sort="price_asc"))
        prices = [p.price for p in result.products]
        assert prices == sorted(prices)

    def test_price_descending(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(sort="price_desc"))
        assert result.products[0].id == 20
        assert result.products[-1].id == 1

    def test_newest_first(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(sort="newest"))
        assert [p.id for p in result.products[:3]] == [20, 19, 18]

    def test_prices_compare_numerically(self, store):
        store.create_product(name="A", price="9.99", category="c", image_url="u")
        store.create_product(name="B", price="10.00", category="c", image_url="u")
        store.create_product(name="C", price="100", category="c", image_url="u")
        products = sort_products(store.list_products().products, "price_asc")
        assert [p.name for p in products] == ["A", "B", "C"]

    def test_sort_is_stable_for_equal_prices(self, store):
        for name in ("first", "second", "third"):
            store.create_product(name=name, price="20", category="c", image_url="u")
        products = sort_products(store.list_products().products, "price_desc")
        assert [p.name for p in products] == ["first", "second", "third"]

    def test_unknown_sort_keeps_order(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(sort="popularity"))
        assert [p.id for p in result.products] == list(range(1, 21))


class TestPagination:
    def test_second_page_of_nine(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(page=2, page_size=9))
        assert len(result.products) == 9
        assert result.total == 20
        assert [p.id for p in result.products] == list(range(10, 19))

    def test_last_partial_page(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(page=3, page_size=9))
        assert [p.id for p in result.products] == [19, 20]
        assert result.total == 20

    def test_page_past_end_is_empty(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(page=10, page_size=9))
        assert result.products == []
        assert result.total == 20

    def test_page_without_size_is_unpaginated(self, catalog_store):
        result = catalog_store.list_products(ProductFilter(page=2))
        assert len(result.products) == 20

    def test_pagination_applies_after_filter_and_sort(self, catalog_store):
        result = catalog_store.list_products(
            ProductFilter(in_stock=True, sort="price_desc", page=1, page_size=3)
        )
        assert [p.id for p in result.products] == [19, 18, 17]
        assert result.total == 19

    def test_total_is_unpaginated_count(self, catalog_store):
        result = catalog_store.list_products(
            ProductFilter(category="Graphic", page=1, page_size=4)
        )
        assert len(result.products) == 4
        assert result.total == 10

    @pytest.mark.parametrize("page,page_size", [(0, 9), (1, 0), (-1, 5)])
    def test_invalid_window(self, page, page_size):
        with pytest.raises(InvalidInputError):
            ProductFilter(page=page, page_size=page_size)


class TestQueryProducts:
    def test_pure_function_over_iterable(self, catalog_store):
        products = catalog_store.list_products().products
        result = query_products(iter(products), ProductFilter(gender="unisex"))
        assert result.total == 6

    def test_to_dict(self, catalog_store):
        data = catalog_store.list_products(ProductFilter(page=1, page_size=2)).to_dict()
        assert data["total"] == 20
        assert data["products"][0]["price"] == 10.0
        assert data["products"][0]["created_at"].endswith("Z")


class TestFacets:
    def test_first_seen_order(self, catalog_store):
        facets = catalog_facets(catalog_store.list_products().products)
        assert facets == {
            "categories": ["Classic", "Graphic"],
            "colors": ["Red", "Black", "White"],
            "sizes": ["S", "M", "L"],
            "genders": ["men", "women", "unisex"],
        }

    def test_empty_catalog(self, store):
        assert store.product_facets() == {
            "categories": [],
            "colors": [],
            "sizes": [],
            "genders": [],
        }
