"""
Shared pytest fixtures for the FlowPro documents test suite.

Every test gets its own data/output directories and an empty config, so
generated files and env overrides never leak between tests.
"""
import io
import os
import base64
import pytest

from docx import Document


# ── Temp data directory (per-test isolation) ──────────────────────────────────

_CONFIG_ENV = ("FLOWPRO_BRAND_NAME", "FLOWPRO_BRAND_TAGLINE", "FLOWPRO_FOOTER",
               "FLOWPRO_MAX_LINE_ITEMS", "FLOWPRO_MAX_NOTES_CHARS",
               "FLOWPRO_MAX_TEMPLATE_BYTES")


@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path_factory, monkeypatch):
    """Redirect DATA_DIR / OUTPUT_DIR / config file to an isolated tmp directory."""
    from flowpro.core import paths

    base = tmp_path_factory.mktemp("flowpro")
    data = str(base / "data")
    output = str(base / "output")
    os.makedirs(data, exist_ok=True)

    monkeypatch.setattr(paths, "DATA_DIR", data)
    monkeypatch.setattr(paths, "OUTPUT_DIR", output)
    monkeypatch.setattr(paths, "LOG_DIR", os.path.join(data, "logs"))
    monkeypatch.setattr(paths, "CONFIG_PATH", str(base / "no_config.json"))
    for name in _CONFIG_ENV:
        monkeypatch.delenv(name, raising=False)
    return data


@pytest.fixture
def output_dir(temp_data_dir):
    from flowpro.core import paths
    return paths.OUTPUT_DIR


# ── Flask test client ─────────────────────────────────────────────────────────

def _basic_auth_header(user="flowpro", pw="changeme"):
    creds = base64.b64encode(f"{user}:{pw}".encode()).decode()
    return {"Authorization": f"Basic {creds}"}


class AuthenticatedClient:
    """Wraps Flask test client to add Basic Auth headers to every request."""
    def __init__(self, client, headers):
        self._client = client
        self._headers = headers

    def get(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.get(*args, **kwargs)

    def post(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.post(*args, **kwargs)


@pytest.fixture
def app(temp_data_dir, monkeypatch):
    """Create Flask app configured for testing."""
    monkeypatch.setenv("FLOWPRO_USER", "flowpro")
    monkeypatch.setenv("FLOWPRO_PASS", "changeme")

    from app import create_app
    flask_app = create_app(setup_logs=False)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    """Authenticated Flask test client (HTTP Basic Auth on every request)."""
    with app.test_client() as c:
        yield AuthenticatedClient(c, _basic_auth_header())


@pytest.fixture
def anon_client(app):
    """Unauthenticated test client."""
    with app.test_client() as c:
        yield c


# ── Sample data factories ─────────────────────────────────────────────────────

@pytest.fixture
def sample_customer():
    return {
        "name": "O'Brien & Sons",
        "phone": "0400 111 222",
        "email": "accounts@obrien.example",
        "address": "12 Harbour St\nFremantle WA 6160",
    }


@pytest.fixture
def sample_line_items():
    return [
        {"description": "Heat pump unit 270L", "quantity": 1, "unit_price": 1950},
        {"description": "Labour (hours)", "quantity": 4, "unit_price": 125},
    ]


@pytest.fixture
def sample_job(sample_customer, sample_line_items):
    """Job row as the dashboard sends it: customer + items joined in."""
    return {
        "id": "6f1c2a8e-job-1042",
        "title": "Hot water system replacement",
        "job_number": 1042,
        "status": "Work Order",
        "revenue": 2450.0,
        "costs": 1610.5,
        "notes": "Remove old 250L unit. Install heat pump on existing slab.\n"
                 "Access via side gate.",
        "Customers": sample_customer,
        "LineItems": sample_line_items,
    }


@pytest.fixture
def bare_job():
    """Draft with nothing filled in but a title."""
    return {"title": "Gutter clean", "job_number": None, "revenue": None,
            "Customers": None, "LineItems": []}


def build_docx(build) -> bytes:
    doc = Document()
    build(doc)
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def _template_body(doc):
    # Placeholder split over two runs, the way Word saves edited text
    p = doc.add_paragraph()
    p.add_run("Job #{job")
    p.add_run("_number} for ")
    p.add_run("{name}").bold = True

    doc.add_paragraph("Revenue: ${revenue}  Costs: ${costs}")
    doc.add_paragraph("Email: {email}")
    doc.add_paragraph("Phone: {phone}")
    doc.add_paragraph("Issued {current_date}")
    doc.add_paragraph("Notes: {notes}")

    table = doc.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Job"
    table.cell(0, 1).text = "{title}"
    table.cell(1, 0).text = "Site"
    table.cell(1, 1).text = "{address}"

    doc.sections[0].header.paragraphs[0].text = "{title} {unused_token}"


@pytest.fixture
def template_docx_bytes():
    """A real .docx with placeholders in body runs, a table and the header."""
    return build_docx(_template_body)


@pytest.fixture
def sample_template(template_docx_bytes):
    """Template row with content stored as a browser data URI."""
    encoded = base64.b64encode(template_docx_bytes).decode()
    return {
        "id": "tpl-01",
        "name": "Site Induction.docx",
        "content": "data:application/vnd.openxmlformats-officedocument."
                   "wordprocessingml.document;base64," + encoded,
    }
