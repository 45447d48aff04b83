from datetime import timedelta

from utils.security import create_access_token

UNKNOWN_ID = "5f0000000000000000000000"


def test_missing_id_precedes_existence_and_role_checks(client, users):
    r = client.delete(f"/api/assignments/{UNKNOWN_ID}")
    assert r.status_code == 400
    assert r.json()["code"] == "bad_request"


def test_unknown_requester_is_not_found_before_role_check(client, users):
    r = client.delete(f"/api/assignments/{UNKNOWN_ID}", params={"adminId": UNKNOWN_ID})
    assert r.status_code == 404
    assert r.json()["message"] == "User tidak ditemukan"


def test_wrong_role_is_forbidden_before_assignment_lookup(client, users):
    r = client.delete(f"/api/assignments/{UNKNOWN_ID}", params={"adminId": users["u1"]})
    assert r.status_code == 403
    assert r.json()["code"] == "forbidden"


def test_admin_reaches_the_assignment_lookup(client, users):
    r = client.delete(f"/api/assignments/{UNKNOWN_ID}", params={"adminId": users["admin"]})
    assert r.status_code == 404
    assert r.json()["message"] == "Tugas tidak ditemukan"


def test_matching_bearer_token_is_accepted(client, users):
    token = create_access_token(users["admin"], "admin")
    r = client.get(
        "/api/users/admin/all",
        params={"adminId": users["admin"]},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert r.status_code == 200, r.text


def test_token_for_another_user_is_forbidden(client, users):
    token = create_access_token(users["u1"], "user")
    r = client.get(
        "/api/users/admin/all",
        params={"adminId": users["admin"]},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert r.status_code == 403


def test_expired_or_garbage_token_is_forbidden(client, users):
    expired = create_access_token(users["admin"], "admin", expires_delta=timedelta(minutes=-5))
    for token in (expired, "garbage"):
        r = client.get(
            "/api/users/admin/all",
            params={"adminId": users["admin"]},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert r.status_code == 403
