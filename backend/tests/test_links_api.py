import asyncio
import json
from datetime import timedelta

from sqlalchemy import select, update

from conftest import create_link, register, sync_engine
from docshare.core.database import SessionLocal
from docshare.models.link import Link
from docshare.models.link_visitor import LinkVisitor
from docshare.tasks.cleanup import delete_expired_links
from docshare.utils.dates import to_iso, utcnow
from docshare.utils.validators import EMAIL_PATTERN


def access(client, link_id, headers=None, **fields):
    payload = {"linkId": link_id, "first_name": "", "last_name": "", "email": "", "password": ""}
    payload.update(fields)
    return client.post("/api/links/shared_access", json=payload, headers=headers or {})


def expire(link_id):
    with sync_engine.begin() as conn:
        conn.execute(
            update(Link).where(Link.id == link_id).values(expiration_time=utcnow() - timedelta(minutes=1))
        )


def test_create_link_returns_access_url(client, auth_headers, document):
    link = create_link(client, auth_headers, document["document_id"], friendlyName="Board deck")
    assert link["linkUrl"] == f"http://testserver/documentAccess/{link['linkId']}"
    assert link["passwordRequired"] is False
    assert link["requiredUserDetailsOption"] == 0
    assert link["friendlyName"] == "Board deck"


def test_create_link_rejects_past_expiration(client, auth_headers, document):
    res = client.post(
        "/api/links",
        json={
            "documentId": document["document_id"],
            "isPublic": True,
            "expirationTime": to_iso(utcnow() - timedelta(days=1)),
        },
        headers=auth_headers,
    )
    assert res.status_code == 400


def test_create_link_rejects_empty_password(client, auth_headers, document):
    res = client.post(
        "/api/links",
        json={"documentId": document["document_id"], "isPublic": True, "password": ""},
        headers=auth_headers,
    )
    assert res.status_code == 400


def test_create_link_requires_document_owner(client, auth_headers, document):
    other = register(client, email="mallory@example.com")
    res = client.post("/api/links", json={"documentId": document["document_id"], "isPublic": True}, headers=other)
    assert res.status_code == 403


def test_link_requirements(client, auth_headers, document):
    link = create_link(
        client, auth_headers, document["document_id"], password="hunter22", requiredUserDetailsOption=2
    )
    res = client.get(f"/api/links/{link['linkId']}")
    assert res.status_code == 200
    assert res.json() == {
        "linkId": link["linkId"],
        "passwordRequired": True,
        "userDetailsOption": 2,
        "isPublic": True,
    }
    assert client.get("/api/links/does-not-exist").status_code == 404


def test_open_link_grants_access_and_counts_view(client, auth_headers, document):
    link = create_link(client, auth_headers, document["document_id"])

    res = access(client, link["linkId"])
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["documentId"] == document["document_id"]
    assert data["fileName"] == "report.pdf"

    download = client.get(data["downloadUrl"])
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4 quarterly numbers"
    assert "report.pdf" in download.headers["content-disposition"]

    info = client.get(f"/api/documents/{document['document_id']}", headers=auth_headers).json()["document"]
    assert info["links"] == 1
    assert info["views"] == 1
    assert info["viewers"] == 1


def test_missing_name_rejected_even_without_client(client, auth_headers, document):
    link = create_link(client, auth_headers, document["document_id"], requiredUserDetailsOption=1)
    res = access(client, link["linkId"])
    assert res.status_code == 400
    assert res.json() == {"message": "Name: This field is required"}

    with sync_engine.connect() as conn:
        visits = conn.execute(select(LinkVisitor.id)).all()
    assert visits == []


def test_invalid_email_rejected(client, auth_headers, document):
    link = create_link(client, auth_headers, document["document_id"], requiredUserDetailsOption=2)
    res = access(client, link["linkId"], first_name="Ada", last_name="Lovelace", email="ada@nowhere")
    assert res.status_code == 400
    assert res.json()["message"].startswith("Email:")


def test_wrong_password_returns_message(client, auth_headers, document):
    link = create_link(client, auth_headers, document["document_id"], password="hunter22")
    res = access(client, link["linkId"], password="hunter23")
    assert res.status_code == 401
    assert res.json() == {"message": "Invalid password"}

    res = access(client, link["linkId"], password="hunter22")
    assert res.status_code == 200


def test_repeat_visitor_counts_once_as_viewer(client, auth_headers, document):
    link = create_link(client, auth_headers, document["document_id"], requiredUserDetailsOption=2)
    for _ in range(2):
        res = access(client, link["linkId"], first_name="Ada", last_name="Lovelace", email="ada@example.com")
        assert res.status_code == 200
    access(client, link["linkId"], first_name="Grace", last_name="Hopper", email="grace@example.com")

    info = client.get(f"/api/documents/{document['document_id']}", headers=auth_headers).json()["document"]
    assert info["views"] == 3
    assert info["viewers"] == 2

    links = client.get(f"/api/documents/{document['document_id']}/links", headers=auth_headers).json()["links"]
    assert links[0]["linkViews"] == 3


def test_private_link_needs_signed_in_user(client, auth_headers, document):
    link = create_link(client, auth_headers, document["document_id"], isPublic=False, requiredUserDetailsOption=2)
    assert access(client, link["linkId"]).status_code == 403

    res = access(client, link["linkId"], headers=auth_headers)
    assert res.status_code == 200
    visitors = client.get(f"/api/documents/{document['document_id']}/visitors", headers=auth_headers).json()
    assert visitors["visitors"][0]["name"] == "Olivia Owner"
    assert visitors["visitors"][0]["email"] == "owner@example.com"


def test_expired_link_is_rejected_and_cleaned_up(client, auth_headers, document):
    link = create_link(client, auth_headers, document["document_id"])
    assert access(client, link["linkId"]).status_code == 200
    expire(link["linkId"])

    assert access(client, link["linkId"]).status_code == 410
    assert client.get(f"/api/links/{link['linkId']}").status_code == 410

    async def cleanup():
        async with SessionLocal() as db:
            return await delete_expired_links(db)

    assert asyncio.run(cleanup()) == 1
    assert access(client, link["linkId"]).status_code == 404
    info = client.get(f"/api/documents/{document['document_id']}", headers=auth_headers).json()["document"]
    assert info["links"] == 0
    assert info["views"] == 0


def test_download_requires_valid_token(client, auth_headers, document):
    link = create_link(client, auth_headers, document["document_id"])
    res = client.get(f"/api/links/{link['linkId']}/download", params={"token": "forged"})
    assert res.status_code == 403


def test_download_token_is_bound_to_its_link(client, auth_headers, document):
    first = create_link(client, auth_headers, document["document_id"])
    second = create_link(client, auth_headers, document["document_id"], password="hunter22")
    url = access(client, first["linkId"]).json()["data"]["downloadUrl"]
    token = url.split("token=", 1)[1]
    res = client.get(f"/api/links/{second['linkId']}/download", params={"token": token})
    assert res.status_code == 403


def test_access_page_lists_required_fields(client, auth_headers, document):
    link = create_link(
        client, auth_headers, document["document_id"], password="hunter22", requiredUserDetailsOption=1
    )
    res = client.get(f"/documentAccess/{link['linkId']}")
    assert res.status_code == 200
    assert "report.pdf" in res.text
    assert 'id="password"' in res.text
    assert 'id="name"' in res.text
    assert 'id="email"' not in res.text
    assert res.headers["cache-control"] == "no-store"


def test_deleted_link_stops_working(client, auth_headers, document):
    link = create_link(client, auth_headers, document["document_id"])
    res = client.delete(f"/api/documents/{document['document_id']}/links/{link['linkId']}", headers=auth_headers)
    assert res.status_code == 200
    assert client.get(f"/api/links/{link['linkId']}").status_code == 404


def test_access_page_checks_email_format_for_name_and_email_tier(client, auth_headers, document):
    link = create_link(client, auth_headers, document["document_id"], requiredUserDetailsOption=2)
    page = client.get(f"/documentAccess/{link['linkId']}").text
    assert 'id="email"' in page
    assert json.dumps(EMAIL_PATTERN.pattern) in page
    assert "Please enter a valid email address" in page
    assert "*This field is required / Please enter a valid Email" in page


def test_access_page_without_email_has_no_email_rule(client, auth_headers, document):
    link = create_link(client, auth_headers, document["document_id"], requiredUserDetailsOption=1)
    page = client.get(f"/documentAccess/{link['linkId']}").text
    assert json.dumps(EMAIL_PATTERN.pattern) not in page
    assert "Please enter a valid email address" not in page
