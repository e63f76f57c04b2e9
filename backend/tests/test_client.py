import httpx
import pytest

from conftest import PASSWORD
from docshare.client import DocShareClient
from docshare.core.exceptions import NetworkError, ServerRejectionError
from docshare.main import app
from docshare.services.access_gate import AccessGate
from docshare.services.forms import Notifier
from docshare.services.link_builder import CreateLinkForm


def asgi_client(**kwargs):
    return DocShareClient(base_url="http://testserver", transport=httpx.ASGITransport(app=app), **kwargs)


def mock_client(handler):
    return DocShareClient(base_url="http://testserver", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_share_and_open_link_end_to_end(storage):
    async with asgi_client() as owner, asgi_client() as visitor:
        await owner.register("Olivia Owner", "owner@example.com", PASSWORD)
        await owner.login("owner@example.com", PASSWORD)
        document = await owner.upload_document("plan.txt", b"the plan", "text/plain")

        form = CreateLinkForm(document["document_id"], owner)
        form.handle_input_change("require_password", True)
        form.handle_input_change("password", "hunter22")
        form.handle_input_change("require_user_details", True)
        form.handle_input_change("required_user_details_option", 2)
        form.handle_input_change("expiration_enabled", True)
        form.handle_input_change("expiration_days", "3")
        link_url = await form.submit()
        link_id = link_url.rsplit("/", 1)[1]

        gate = await AccessGate.for_link(link_id, visitor)
        assert gate.required_fields == ("password", "name", "email")
        gate.handle_change("password", "hunter22")
        gate.handle_change("name", "Ada Lovelace")
        gate.handle_change("email", "ada@example.com")
        shared = await gate.submit()

        assert shared["fileName"] == "plan.txt"
        assert await visitor.download(shared["downloadUrl"]) == b"the plan"

        visitors = await owner.list_visitors(document["document_id"])
        assert [(v["name"], v["email"]) for v in visitors] == [("Ada Lovelace", "ada@example.com")]
        links = await owner.list_links(document["document_id"])
        assert links[0]["linkViews"] == 1


@pytest.mark.asyncio
async def test_wrong_password_surfaces_server_message(storage):
    notifier = Notifier()
    async with asgi_client() as owner, asgi_client() as visitor:
        await owner.register("Olivia Owner", "owner@example.com", PASSWORD)
        await owner.login("owner@example.com", PASSWORD)
        document = await owner.upload_document("plan.txt", b"the plan", "text/plain")
        link = await owner.create_link(
            {"documentId": document["document_id"], "isPublic": True, "password": "hunter22"}
        )

        gate = await AccessGate.for_link(link["linkId"], visitor, notifier=notifier)
        gate.handle_change("password", "hunter23")
        with pytest.raises(ServerRejectionError) as exc:
            await gate.submit()

    assert exc.value.status_code == 401
    assert notifier.last.message == "Invalid password"


@pytest.mark.asyncio
async def test_unreachable_server_raises_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_client(handler) as client:
        with pytest.raises(NetworkError) as exc:
            await client.get_link_requirements("link-1")
    assert exc.value.message == "No response from server! Please try again later."


@pytest.mark.asyncio
async def test_error_message_taken_from_detail():
    def handler(request):
        return httpx.Response(404, json={"detail": "Link not found"})

    async with mock_client(handler) as client:
        with pytest.raises(ServerRejectionError) as exc:
            await client.get_link_requirements("link-1")
    assert exc.value.message == "Link not found"
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_create_link_without_url_is_an_error():
    def handler(request):
        return httpx.Response(200, json={"link": {}})

    async with mock_client(handler) as client:
        with pytest.raises(ServerRejectionError) as exc:
            await client.create_link({"documentId": "doc-1", "isPublic": True})
    assert exc.value.message == "No link returned by server."


@pytest.mark.asyncio
async def test_forgot_password_returns_check_email_url():
    def handler(request):
        assert request.url.path == "/api/auth/password/forgot"
        return httpx.Response(200, json={"url": "/auth/check-email?email=ada%40example.com"})

    async with mock_client(handler) as client:
        assert await client.forgot_password("ada@example.com") == "/auth/check-email?email=ada%40example.com"
