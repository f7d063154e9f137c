"""Tests for the product endpoints."""

import pytest
from fastapi.testclient import TestClient

from storefront.catalog.service import MAX_PAGE


def create_category(client: TestClient, headers: dict[str, str], name: str, parent_id: str | None = None) -> str:
    response = client.post("/admin/categories", json={"name": name, "parentId": parent_id}, headers=headers)
    return response.json()["id"]


def create_product(client: TestClient, headers: dict[str, str], **fields) -> dict:
    payload = {"visibility": "visible", "published": True, **fields}
    response = client.post("/admin/products", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def catalogue(client: TestClient, admin_headers: dict[str, str]) -> dict[str, str]:
    """Two chairs and a tablecloth under two roots, plus a hidden product."""
    furniture = create_category(client, admin_headers, "Mobilier")
    chairs = create_category(client, admin_headers, "Chaises", furniture)
    linen = create_category(client, admin_headers, "Linge")

    tiffany = create_product(
        client,
        admin_headers,
        name="Chaise Tiffany",
        categoryIds=[chairs],
        regularPrice=12,
        salePrice=8,
        brand="Tiffany",
    )
    folding = create_product(client, admin_headers, name="Chaise pliante", categoryIds=[chairs], regularPrice=4)
    cloth = create_product(
        client,
        admin_headers,
        name="Nappe blanche",
        categoryIds=[linen],
        regularPrice=15,
        isInStock=False,
    )
    hidden = create_product(client, admin_headers, name="Chaise cachée", categoryIds=[chairs], published=False)
    return {
        "furniture": furniture,
        "chairs": chairs,
        "linen": linen,
        "tiffany": tiffany["id"],
        "folding": folding["id"],
        "cloth": cloth["id"],
        "hidden": hidden["id"],
    }


def names(response) -> set[str]:
    return {p["name"] for p in response.json()["items"]}


class TestAdminProducts:
    """Tests for product administration."""

    def test_create_derives_closure(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        """allCategoryIds in the payload is ignored and recomputed."""
        furniture = create_category(client, admin_headers, "Mobilier")
        chairs = create_category(client, admin_headers, "Chaises", furniture)

        product = create_product(
            client,
            admin_headers,
            name="Chaise",
            categoryIds=[chairs],
            allCategoryIds=["00000000-0000-0000-0000-000000000000"],
            regularPrice="12.50",
        )

        assert product["categoryIds"] == [chairs]
        assert set(product["allCategoryIds"]) == {furniture, chairs}
        assert product["regularPrice"] == 12.5
        assert product["effectivePrice"] == 12.5
        assert product["isInStock"] is True

    def test_create_without_name(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.post("/admin/products", json={"brand": "Tiffany"}, headers=admin_headers)
        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["details"] == {"field": "name"}

    def test_update_categories(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        furniture = create_category(client, admin_headers, "Mobilier")
        linen = create_category(client, admin_headers, "Linge")
        product = create_product(client, admin_headers, name="Nappe", categoryIds=[furniture])

        response = client.put(
            f"/admin/products/{product['id']}",
            json={"categoryIds": [linen], "shortDescription": "Coton"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["categoryIds"] == [linen]
        assert body["allCategoryIds"] == [linen]
        assert body["shortDescription"] == "Coton"
        assert body["name"] == "Nappe"

    def test_admin_list_includes_hidden(
        self, client: TestClient, admin_headers: dict[str, str], catalogue: dict[str, str]
    ) -> None:
        response = client.get("/admin/products", params={"pageSize": 50}, headers=admin_headers)
        assert response.json()["total"] == 4
        assert "Chaise cachée" in names(response)

    def test_delete(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        product = create_product(client, admin_headers, name="Arche")
        response = client.delete(f"/admin/products/{product['id']}", headers=admin_headers)
        assert response.json() == {"ok": True, "id": product["id"]}
        assert client.get(f"/admin/products/{product['id']}", headers=admin_headers).status_code == 404


class TestPublicSearch:
    """Tests for the public catalogue search."""

    def test_listed_only(self, client: TestClient, catalogue: dict[str, str]) -> None:
        response = client.get("/products")
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert body["page"] == 1
        assert body["totalPages"] == 1
        assert names(response) == {"Chaise Tiffany", "Chaise pliante", "Nappe blanche"}

    def test_category_includes_descendants(self, client: TestClient, catalogue: dict[str, str]) -> None:
        response = client.get("/products", params={"categoryId": catalogue["furniture"]})
        assert names(response) == {"Chaise Tiffany", "Chaise pliante"}

    def test_category_path(self, client: TestClient, catalogue: dict[str, str]) -> None:
        response = client.get("/products", params={"categoryPath": "linge"})
        assert names(response) == {"Nappe blanche"}

    def test_price_stock_and_brand(self, client: TestClient, catalogue: dict[str, str]) -> None:
        assert names(client.get("/products", params={"maxPrice": "8"})) == {"Chaise Tiffany", "Chaise pliante"}
        assert names(client.get("/products", params={"minPrice": "10"})) == {"Nappe blanche"}
        assert names(client.get("/products", params={"inStock": "false"})) == {"Nappe blanche"}
        assert names(client.get("/products", params={"brand": "TIFFANY"})) == {"Chaise Tiffany"}
        assert names(client.get("/products", params={"q": "pliante"})) == {"Chaise pliante"}

    def test_lenient_params(self, client: TestClient, catalogue: dict[str, str]) -> None:
        """Unreadable parameters are ignored instead of rejected."""
        response = client.get(
            "/products",
            params={"page": "abc", "inStock": "yes", "minPrice": "abc", "categoryId": "nope"},
        )
        assert response.status_code == 200
        assert response.json()["page"] == 1
        assert response.json()["total"] == 3

    def test_page_beyond_range(self, client: TestClient, catalogue: dict[str, str]) -> None:
        response = client.get("/products", params={"page": "5"})
        body = response.json()
        assert body["items"] == []
        assert body["total"] == 3
        assert body["page"] == 5

    @pytest.mark.parametrize("page", ["1e200000000", "99999999999999999999999"])
    def test_huge_page_is_capped(self, client: TestClient, catalogue: dict[str, str], page: str) -> None:
        """Huge page numbers answer quickly with an empty page."""
        response = client.get("/products", params={"page": page})
        assert response.status_code == 200
        body = response.json()
        assert body["items"] == []
        assert body["total"] == 3
        assert body["page"] == MAX_PAGE

    def test_admin_huge_page_is_capped(
        self, client: TestClient, admin_headers: dict[str, str], catalogue: dict[str, str]
    ) -> None:
        response = client.get("/admin/products", params={"page": "1e200000000"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["page"] == MAX_PAGE

    def test_by_ids(self, client: TestClient, catalogue: dict[str, str]) -> None:
        """Request order is kept; hidden and junk ids are dropped."""
        ids = ",".join([catalogue["cloth"], "junk", catalogue["hidden"], catalogue["tiffany"]])
        response = client.get("/products/by-ids", params={"ids": ids})

        assert response.status_code == 200
        items = response.json()["items"]
        assert [p["name"] for p in items] == ["Nappe blanche", "Chaise Tiffany"]
        assert items[0]["isInStock"] is False

    def test_get_product(self, client: TestClient, catalogue: dict[str, str]) -> None:
        response = client.get(f"/products/{catalogue['tiffany']}")
        assert response.status_code == 200
        assert response.json()["effectivePrice"] == 8

    def test_hidden_product_not_found(self, client: TestClient, catalogue: dict[str, str]) -> None:
        response = client.get(f"/products/{catalogue['hidden']}")
        assert response.status_code == 404
        assert response.json()["error_code"] == "PRODUCT_NOT_FOUND"

    def test_brands(self, client: TestClient, catalogue: dict[str, str]) -> None:
        response = client.get("/products/brands")
        assert response.status_code == 200
        assert response.json() == {"items": ["Tiffany"]}
