"""
Integration tests for the gallery HTTP application.
"""

import base64
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from simplegallery.api.app import create_app
from tests.conftest import TestDataFactory

pytestmark = pytest.mark.integration

ALICE = ("alice", "wonderland")
BOB = ("bob", "builder")
CAROL = ("carol", "secret")
DAVE = ("dave", "hunter2")
ZOE = ("zoe", "grüße")


def basic_header(user_name: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{user_name}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def users_file(temp_dir):
    return TestDataFactory.write_users_file(
        temp_dir,
        [
            TestDataFactory.create_user_entry("alice", "wonderland", {"allow": ["vacation"]}),
            TestDataFactory.create_user_entry("bob", "builder", "all"),
            TestDataFactory.create_user_entry("carol", "secret", None),
            TestDataFactory.create_user_entry("dave", "hunter2", {"deny": ["work"]}),
            TestDataFactory.create_user_entry("zoe", "grüße", "all"),
        ],
    )


@pytest.fixture
def settings(make_settings, users_file):
    return make_settings(users_file=users_file, persist_cache=True)


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client


class TestAuthentication:
    """Requests without valid credentials."""

    @pytest.mark.parametrize("url", ["/gallery/", "/galleryfiles/root.gif", "/gallerypreviews/root.gif@150"])
    def test_missing_credentials(self, client, url):
        """Test every gallery route asks for credentials."""
        response = client.get(url)

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == 'Basic realm="simple-gallery"'
        assert "No credentials provided" in response.text

    @pytest.mark.parametrize("auth", [("alice", "wrong"), ("mallory", "wonderland")])
    def test_rejected_credentials(self, client, auth):
        """Test wrong passwords and unknown users are rejected alike."""
        response = client.get("/gallery/", auth=auth)

        assert response.status_code == 401
        assert "WWW-Authenticate" in response.headers
        assert "Credentials rejected" in response.text

    def test_non_ascii_credentials(self, client):
        """Test credentials are decoded as UTF-8."""
        response = client.get("/gallery/", headers=basic_header(*ZOE))

        assert response.status_code == 200
        assert 'href="/gallery/work"' in response.text

    @pytest.mark.parametrize(
        "authorization",
        [
            "Basic !!!notbase64",
            "Basic " + base64.b64encode(b"no-separator").decode("ascii"),
            "Basic " + base64.b64encode(b"zoe:\xff\xfe").decode("ascii"),
        ],
    )
    def test_malformed_credentials(self, client, authorization):
        """Test undecodable credentials get the HTML rejection and the realm."""
        response = client.get("/gallery/", headers={"Authorization": authorization})

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == 'Basic realm="simple-gallery"'
        assert response.headers["content-type"].startswith("text/html")
        assert "Credentials rejected" in response.text

    def test_other_scheme_counts_as_missing(self, client):
        """Test a non-Basic Authorization header is treated as no credentials."""
        response = client.get("/gallery/", headers={"Authorization": "Bearer abc"})

        assert response.status_code == 401
        assert "No credentials provided" in response.text

    def test_custom_realm(self, make_settings, users_file):
        """Test the configured realm is announced."""
        app = create_app(make_settings(users_file=users_file, auth_realm="family"))

        with TestClient(app) as client:
            response = client.get("/gallery/")
            malformed = client.get("/gallery/", headers={"Authorization": "Basic !!!notbase64"})

        assert response.headers["www-authenticate"] == 'Basic realm="family"'
        assert malformed.status_code == 401
        assert malformed.headers["www-authenticate"] == 'Basic realm="family"'

    def test_unreadable_users_file_rejects_everyone(self, make_settings, temp_dir):
        """Test a broken users file keeps authentication on with nobody allowed in."""
        broken = temp_dir / "broken.json"
        broken.write_text("{not json", encoding="utf-8")

        with TestClient(create_app(make_settings(users_file=broken))) as client:
            response = client.get("/gallery/", auth=BOB)

        assert response.status_code == 401

    def test_authentication_disabled(self, make_settings):
        """Test the gallery is open when no users file is configured."""
        with TestClient(create_app(make_settings())) as client:
            response = client.get("/gallery/")

        assert response.status_code == 200
        assert "vacation" in response.text


class TestListing:
    """Directory listing pages."""

    def test_root_listing(self, client):
        """Test the root page shows directories and files but no hidden entries."""
        response = client.get("/gallery/", auth=BOB)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "<h1>Home</h1>" in response.text
        assert 'href="/gallery/vacation"' in response.text
        assert 'href="/gallery/work"' in response.text
        assert 'src="/gallerypreviews/root.gif@150"' in response.text
        assert ".secret" not in response.text
        assert "Up</h4>" not in response.text

    def test_directories_listed_before_files(self, client):
        """Test directories come first in the page."""
        text = client.get("/gallery/", auth=BOB).text

        assert text.index("/gallery/work") < text.index("/galleryfiles/broken.jpg")

    def test_nested_listing(self, client):
        """Test a nested page links up and shows previews."""
        response = client.get("/gallery/vacation/beach", auth=ALICE)

        assert response.status_code == 200
        assert 'href="/gallery/vacation"' in response.text
        assert 'src="/gallerypreviews/vacation/beach/sunset.jpg@150"' in response.text
        assert 'href="/galleryfiles/vacation/beach/sunset.jpg"' in response.text
        assert ".hidden.jpg" not in response.text

    def test_allowed_subtree(self, client):
        """Test a restricted user reaches the allowed directory."""
        assert client.get("/gallery/vacation", auth=ALICE).status_code == 200

    @pytest.mark.parametrize("url", ["/gallery/", "/gallery/work"])
    def test_denied_directory(self, client, url):
        """Test paths outside the allow list are forbidden."""
        response = client.get(url, auth=ALICE)

        assert response.status_code == 403
        assert "Access denied" in response.text

    def test_user_without_access_level(self, client):
        """Test a user without an access level sees nothing."""
        assert client.get("/gallery/vacation", auth=CAROL).status_code == 403

    def test_denied_children_hidden(self, client):
        """Test denied subdirectories are left out of the parent listing."""
        response = client.get("/gallery/", auth=DAVE)

        assert response.status_code == 200
        assert 'href="/gallery/vacation"' in response.text
        assert 'href="/gallery/work"' not in response.text
        assert client.get("/gallery/work", auth=DAVE).status_code == 403

    @pytest.mark.parametrize("url", ["/gallery/missing", "/gallery/root.gif"])
    def test_missing_directory(self, client, url):
        """Test missing directories and files under the listing route."""
        response = client.get(url, auth=BOB)

        assert response.status_code == 404
        assert "Route not found" in response.text

    def test_unknown_route(self, client):
        """Test paths outside every route base are not found."""
        assert client.get("/elsewhere", auth=BOB).status_code == 404

    def test_custom_url_bases(self, make_settings):
        """Test routes follow the configured URL bases."""
        settings = make_settings(html_url_base="pics", files_url_base="raw", previews_url_base="thumbs")

        with TestClient(create_app(settings)) as client:
            response = client.get("/pics/work")

        assert response.status_code == 200
        assert 'href="/raw/work/report.png"' in response.text
        assert 'src="/thumbs/work/report.png@150"' in response.text


class TestOriginals:
    """Full-size file route."""

    @pytest.mark.parametrize(
        "path,content_type",
        [
            ("vacation/beach/sunset.jpg", "image/jpeg"),
            ("vacation2/pic.png", "image/png"),
            ("root.gif", "image/gif"),
        ],
    )
    def test_image_content_types(self, client, photos_root, path, content_type):
        """Test images are served unchanged with their content type."""
        response = client.get(f"/galleryfiles/{path}", auth=BOB)

        assert response.status_code == 200
        assert response.headers["content-type"] == content_type
        assert response.content == (photos_root / path).read_bytes()

    def test_other_files(self, client):
        """Test non-image files are served as well."""
        response = client.get("/galleryfiles/vacation/notes.txt", auth=BOB)

        assert response.status_code == 200
        assert response.text == "sunscreen"

    @pytest.mark.parametrize("path", ["vacation", "vacation/missing.jpg"])
    def test_missing_file(self, client, path):
        """Test directories and missing files are not found."""
        assert client.get(f"/galleryfiles/{path}", auth=BOB).status_code == 404


class TestPreviews:
    """Preview route."""

    def test_preview_generated_and_persisted(self, client, previews_root):
        """Test a preview is resized, typed and stored."""
        response = client.get("/gallerypreviews/vacation/beach/sunset.jpg@150", auth=ALICE)

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert Image.open(io.BytesIO(response.content)).size == (150, 112)
        stored = previews_root / "vacation" / "beach" / "sunset.jpg@150"
        assert stored.read_bytes() == response.content

    def test_preview_repeatable(self, client):
        """Test repeated requests return identical bytes."""
        first = client.get("/gallerypreviews/vacation2/pic.png@50", auth=BOB)
        second = client.get("/gallerypreviews/vacation2/pic.png@50", auth=BOB)

        assert first.status_code == second.status_code == 200
        assert first.content == second.content
        assert Image.open(io.BytesIO(first.content)).size == (25, 50)

    def test_preview_name_with_separator(self, client, photos_root):
        """Test names containing '@' work through the encoded preview link."""
        (photos_root / "work" / "me@home.png").write_bytes((photos_root / "work" / "report.png").read_bytes())

        response = client.get("/gallerypreviews/work/me%40home.png@32", auth=BOB)

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"

    def test_missing_source(self, client, previews_root):
        """Test a missing source is not found and nothing is written."""
        response = client.get("/gallerypreviews/vacation/nothing.jpg@150", auth=BOB)

        assert response.status_code == 404
        assert not previews_root.exists()

    @pytest.mark.parametrize(
        "request_id",
        ["vacation/beach/sunset.jpg", "vacation/beach/sunset.jpg@abc", "vacation/beach/sunset.jpg@0", "@150"],
    )
    def test_bad_request(self, client, request_id):
        """Test malformed identifiers and dimensions are bad requests."""
        response = client.get(f"/gallerypreviews/{request_id}", auth=BOB)

        assert response.status_code == 400
        assert "Bad request" in response.text

    def test_undecodable_source(self, client, previews_root):
        """Test an undecodable source is a server error and nothing is stored."""
        response = client.get("/gallerypreviews/broken.jpg@150", auth=BOB)

        assert response.status_code == 500
        assert "Preview could not be generated" in response.text
        assert not (previews_root / "broken.jpg@150").exists()

    def test_ephemeral_mode(self, make_settings, users_file, previews_root):
        """Test previews are served without touching disk when persistence is off."""
        with TestClient(create_app(make_settings(users_file=users_file))) as client:
            response = client.get("/gallerypreviews/work/report.png@16", auth=BOB)

        assert response.status_code == 200
        assert Image.open(io.BytesIO(response.content)).size == (16, 16)
        assert not previews_root.exists()


class TestHealth:
    """Health endpoint."""

    def test_healthz_without_credentials(self, client):
        """Test the health report is public."""
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_healthz_unhealthy(self, make_settings, temp_dir):
        """Test a missing photos root reports 503."""
        with TestClient(create_app(make_settings(photos_root=temp_dir / "nowhere"))) as client:
            response = client.get("/healthz")

        assert response.status_code == 503
        assert response.json()["checks"]["photos_root"]["status"] == "unhealthy"
