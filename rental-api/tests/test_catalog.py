import unittest

from support import ApiTestCase


class ItemCatalogTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.admin_id, self.admin = self.signup("warden", admin=True)
        self.member_id, self.member = self.signup("scav")

    def test_create_item_snapshots_derived_rates(self):
        item = self.create_item(self.admin, market_rate=100_000, quantity=5)
        self.assertEqual(item["daily_rate"], 2_000)
        self.assertEqual(item["weekly_rate"], 10_500)
        self.assertEqual(item["required_collateral"], 80_000)
        self.assertEqual(item["quantity"], 5)
        self.assertEqual(item["available_quantity"], 5)
        self.assertEqual(item["availability"], "available")

    def test_members_cannot_manage_catalog(self):
        response = self.client.post(
            "/items",
            json={"name": "Knife", "category": "Melee", "market_rate": 10, "quantity": 1},
            headers=self.member,
        )
        self.assertEqual(response.status_code, 403)

        item = self.create_item(self.admin)
        self.assertEqual(self.client.patch(f"/items/{item['id']}", json={"quantity": 1}, headers=self.member).status_code, 403)
        self.assertEqual(self.client.delete(f"/items/{item['id']}", headers=self.member).status_code, 403)

    def test_anonymous_cannot_create_item(self):
        response = self.client.post("/items", json={"name": "Knife", "category": "Melee", "market_rate": 10})
        self.assertIn(response.status_code, (401, 403))

    def test_market_rate_edit_rederives_rates(self):
        item = self.create_item(self.admin, market_rate=100_000)
        response = self.client.patch(f"/items/{item['id']}", json={"market_rate": 50_000}, headers=self.admin)
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["market_rate"], 50_000)
        self.assertEqual(body["daily_rate"], 1_000)
        self.assertEqual(body["weekly_rate"], 5_250)
        self.assertEqual(body["required_collateral"], 40_000)

    def test_other_edits_keep_rate_snapshot(self):
        item = self.create_item(self.admin, market_rate=100_000)
        response = self.client.patch(f"/items/{item['id']}", json={"name": "Vortex Rifle Mk2"}, headers=self.admin)
        body = response.json()
        self.assertEqual(body["name"], "Vortex Rifle Mk2")
        self.assertEqual(body["daily_rate"], 2_000)

    def test_blank_name_or_category_edit_rejected(self):
        item = self.create_item(self.admin)
        for field in ("name", "category"):
            response = self.client.patch(f"/items/{item['id']}", json={field: "   "}, headers=self.admin)
            self.assertEqual(response.status_code, 422, field)

        stored = self.get_item(item["id"])
        self.assertEqual((stored["name"], stored["category"]), ("Vortex Rifle", "Weapons"))

        renamed = self.client.patch(f"/items/{item['id']}", json={"name": "  Vortex Mk2 "}, headers=self.admin)
        self.assertEqual(renamed.json()["name"], "Vortex Mk2")

    def test_quantity_edit_preserves_units_on_rent(self):
        item = self.create_item(self.admin, quantity=5)
        rental = self.rent(self.member, [(item["id"], 2)])
        self.client.post(f"/rentals/{rental['id']}/approve", headers=self.admin)
        self.assertEqual(self.get_item(item["id"])["available_quantity"], 3)

        body = self.client.patch(f"/items/{item['id']}", json={"quantity": 8}, headers=self.admin).json()
        self.assertEqual(body["quantity"], 8)
        self.assertEqual(body["available_quantity"], 6)

        body = self.client.patch(f"/items/{item['id']}", json={"quantity": 1}, headers=self.admin).json()
        self.assertEqual(body["quantity"], 1)
        self.assertEqual(body["available_quantity"], 0)

    def test_update_missing_item(self):
        response = self.client.patch(
            "/items/00000000-0000-0000-0000-000000000000", json={"quantity": 2}, headers=self.admin
        )
        self.assertEqual(response.status_code, 404)

    def test_filter_by_availability(self):
        rifle = self.create_item(self.admin, name="Rifle")
        self.create_item(self.admin, name="Helmet", category="Armor")
        self.rent(self.member, [(rifle["id"], 1)])

        reserved = self.client.get("/items", params={"availability": "reserved"}).json()
        self.assertEqual([i["name"] for i in reserved], ["Rifle"])
        available = self.client.get("/items", params={"availability": "available"}).json()
        self.assertEqual([i["name"] for i in available], ["Helmet"])
        armor = self.client.get("/items", params={"category": "Armor"}).json()
        self.assertEqual([i["name"] for i in armor], ["Helmet"])

    def test_list_newest_first(self):
        self.create_item(self.admin, name="First")
        self.create_item(self.admin, name="Second")
        names = [i["name"] for i in self.client.get("/items").json()]
        self.assertEqual(names, ["Second", "First"])

    def test_delete_item_leaves_rental_snapshot(self):
        item = self.create_item(self.admin)
        rental = self.rent(self.member, [(item["id"], 1)])

        self.assertEqual(self.client.delete(f"/items/{item['id']}", headers=self.admin).status_code, 204)
        self.assertEqual(self.client.get(f"/items/{item['id']}").status_code, 404)

        snapshot = self.client.get(f"/rentals/{rental['id']}", headers=self.member).json()
        self.assertEqual(snapshot["items"][0]["item_id"], item["id"])
        self.assertEqual(snapshot["items"][0]["item_name"], "Vortex Rifle")

        # Orphaned references are skipped by the ledger
        approved = self.client.post(f"/rentals/{rental['id']}/approve", headers=self.admin)
        self.assertEqual(approved.status_code, 200)
        self.assertEqual(approved.json()["status"], "active")


class CategoryRegistryTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        _, self.admin = self.signup("warden", admin=True)
        _, self.member = self.signup("scav")

    def test_categories_sorted_by_name(self):
        for name in ("Weapons", "Armor", "  Medical  "):
            response = self.client.post("/categories", json={"name": name}, headers=self.admin)
            self.assertEqual(response.status_code, 201, response.text)
        names = [c["name"] for c in self.client.get("/categories").json()]
        self.assertEqual(names, ["Armor", "Medical", "Weapons"])

    def test_members_cannot_create_categories(self):
        response = self.client.post("/categories", json={"name": "Loot"}, headers=self.member)
        self.assertEqual(response.status_code, 403)

    def test_blank_category_rejected(self):
        response = self.client.post("/categories", json={"name": "   "}, headers=self.admin)
        self.assertEqual(response.status_code, 400)

    def test_deleting_category_leaves_items_alone(self):
        category = self.client.post("/categories", json={"name": "Weapons"}, headers=self.admin).json()
        item = self.create_item(self.admin, category="Weapons")

        self.assertEqual(self.client.delete(f"/categories/{category['id']}", headers=self.admin).status_code, 204)
        self.assertEqual(self.client.get("/categories").json(), [])
        self.assertEqual(self.get_item(item["id"])["category"], "Weapons")

    def test_delete_missing_category(self):
        response = self.client.delete("/categories/00000000-0000-0000-0000-000000000000", headers=self.admin)
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
