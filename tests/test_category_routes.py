"""
Tests for the /api/categories endpoints.
"""
from conftest import make_post


class TestCategories:
    """Tests for listing, creating and deleting categories."""

    def test_list_is_public_and_sorted(self, client, db, category):
        db.categories.insert_one({"name": "Art", "slug": "art", "description": None})
        response = client.get("/api/categories")
        body = response.get_json()
        assert response.status_code == 200
        assert body["count"] == 2
        assert [c["name"] for c in body["data"]] == ["Art", "Technology"]

    def test_admin_creates_category(self, client, db, admin):
        response = client.post("/api/categories", headers=admin[1],
                               json={"name": "Home Cooking", "description": "Recipes"})
        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["slug"] == "home-cooking"
        assert db.categories.find_one({"slug": "home-cooking"}) is not None

    def test_regular_user_cannot_create(self, client, user):
        response = client.post("/api/categories", headers=user[1], json={"name": "Music"})
        assert response.status_code == 403
        assert response.get_json()["success"] is False

    def test_duplicate_slug_conflicts(self, client, category, admin):
        response = client.post("/api/categories", headers=admin[1], json={"name": "technology"})
        assert response.status_code == 409

    def test_short_name_rejected(self, client, admin):
        response = client.post("/api/categories", headers=admin[1], json={"name": "x"})
        assert response.status_code == 400

    def test_admin_deletes_unused_category(self, client, db, category, admin):
        response = client.delete(f"/api/categories/{category['_id']}", headers=admin[1])
        assert response.status_code == 200
        assert db.categories.count_documents({}) == 0

    def test_category_in_use_cannot_be_deleted(self, client, db, category, user, admin):
        make_post(db, user[0], category)
        response = client.delete(f"/api/categories/{category['_id']}", headers=admin[1])
        assert response.status_code == 409
        assert response.get_json()["message"] == "Category is used by 1 post(s)"

    def test_delete_unknown_category_is_404(self, client, admin):
        response = client.delete("/api/categories/507f1f77bcf86cd799439011", headers=admin[1])
        assert response.status_code == 404
