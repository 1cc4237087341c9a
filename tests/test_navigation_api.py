# tests/test_navigation_api.py
NAV = "/api/navigation"


def codes(items):
    return [i["code"] for i in items]


async def test_admin_navigation(client, admin_headers):
    r = await client.get(NAV, headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert codes(body["items"]) == ["dashboard", "admin", "admin.menus"]
    assert [i["depth"] for i in body["items"]] == [0, 0, 1]
    assert codes(body["tree"][1]["children"]) == ["admin.menus"]


async def test_hidden_group_hides_its_children(client, staff_headers):
    # staff holds reports.view (admin.users) but not menus.view (its parent group)
    r = await client.get(NAV, headers=staff_headers)
    assert codes(r.json()["items"]) == ["dashboard", "reports"]


async def test_management_view(client, admin_headers, staff_headers):
    r = await client.get(NAV, params={"management": "true"}, headers=admin_headers)
    assert r.status_code == 200
    assert codes(r.json()["items"]) == ["dashboard", "admin", "admin.menus", "hidden.tools"]

    r = await client.get(NAV, params={"management": "true"}, headers=staff_headers)
    assert r.status_code == 403


async def test_menu_writes_refresh_navigation(client, admin_headers):
    r = await client.get(NAV, headers=admin_headers)
    assert "admin.menus" in codes(r.json()["items"])

    r = await client.put("/api/admin/menus/3", json={"status": "inactive"}, headers=admin_headers)
    assert r.status_code == 200

    r = await client.get(NAV, headers=admin_headers)
    assert "admin.menus" not in codes(r.json()["items"])

    await client.delete("/api/admin/menus/2", headers=admin_headers)
    r = await client.get(NAV, headers=admin_headers)
    assert codes(r.json()["items"]) == ["dashboard"]


async def test_deleted_group_hides_its_live_children(client, admin_headers):
    r = await client.delete("/api/admin/menus/2", headers=admin_headers)
    assert r.status_code == 200

    # admin.menus (3) is still active but sits under the deleted group
    r = await client.get(NAV, headers=admin_headers)
    assert codes(r.json()["items"]) == ["dashboard"]

    r = await client.get(NAV, params={"management": "true"}, headers=admin_headers)
    assert codes(r.json()["items"]) == ["dashboard", "hidden.tools"]
