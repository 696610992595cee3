import json

import pytest

from service import app

from conftest import RESIDES_AT, VC_V2, example_path, read_example


@pytest.fixture
def client():
    app.config["TESTING"] = True
    # the example documents reference types-context.jsonld next to them
    app.config["LOCAL_CONTEXTS"] = True
    with app.test_client() as client:
        yield client
    app.config["LOCAL_CONTEXTS"] = False


def post(client, name, accept="application/json", query=""):
    return client.post("/expansions" + query,
                       data=json.dumps(read_example(name)),
                       headers={"Content-Type": "application/ld+json",
                                "Accept": accept,
                                "Content-Location": example_path(name).as_uri()})


def test_report(client):
    resp = post(client, "person-missing-predicate.jsonld")

    assert resp.status_code == 200
    assert resp.headers["X-JsonLd-Warnings"] == "1"
    report = resp.get_json()
    assert [e["details"]["property"] for e in report["events"]] == ["residesAt"]
    assert report["properties"]["givenName"] == "http://example.org/givenName"


def test_safe_mode_rejects(client):
    resp = post(client, "person-missing-predicate.jsonld", query="?safe=1")

    assert resp.status_code == 422
    assert resp.get_json()["events"][0]["code"] == "invalid property"


def test_safe_mode_accepts(client):
    resp = post(client, "person-with-predicate.jsonld", query="?safe=true&lint=true")

    assert resp.status_code == 200
    assert resp.headers["X-JsonLd-Warnings"] == "0"


def test_expanded_jsonld(client):
    resp = post(client, "person-with-predicate.jsonld", accept="application/ld+json")

    assert resp.status_code == 200
    assert resp.mimetype == "application/ld+json"
    [node] = json.loads(resp.data)
    assert RESIDES_AT in node


def test_rdf_output(client):
    resp = post(client, "person-with-predicate.jsonld", accept="application/n-triples")

    assert resp.status_code == 200
    assert resp.mimetype == "application/n-triples"
    assert "<%s>" % RESIDES_AT in resp.get_data(as_text=True)


def test_no_content(client):
    resp = client.post("/expansions", data=b"", headers={"Content-Type": "application/json"})
    assert resp.status_code == 204


def test_bad_json(client):
    resp = client.post("/expansions", data=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400


def test_unacceptable(client):
    resp = post(client, "person-with-predicate.jsonld", accept="image/png")
    assert resp.status_code == 406


def test_unsupported_media_type(client):
    resp = client.post("/expansions", data=b"{}", headers={"Content-Type": "text/plain"})
    assert resp.status_code == 415


def test_unloadable_context(client):
    resp = client.post("/expansions",
                       data=json.dumps({"@context": "https://example.org/unknown.jsonld"}),
                       headers={"Content-Type": "application/json"})
    assert resp.status_code == 422


def test_bundled_contexts(client):
    resp = client.get("/contexts")
    assert resp.get_json() == [VC_V2]


def test_local_file_contexts_are_refused_by_default(client, tmp_path):
    app.config["LOCAL_CONTEXTS"] = False
    context = tmp_path / "private.jsonld"
    context.write_text(json.dumps({"@context": {"apiKey": "http://example.org/apiKey"}}))

    for reference in (context.as_uri(), str(context)):
        resp = client.post("/expansions",
                           data=json.dumps({"@context": reference, "apiKey": "x"}),
                           headers={"Content-Type": "application/json"})
        assert resp.status_code == 422
        assert b"apiKey" not in resp.data

    # a file: base only reaches the filesystem through relative references
    resp = post(client, "person-with-predicate.jsonld")
    assert resp.status_code == 422


def test_bundled_contexts_still_served_without_local_files(client):
    app.config["LOCAL_CONTEXTS"] = False
    document = {"@context": [VC_V2, {"residesAt": RESIDES_AT}],
                "type": "VerifiableCredential", "residesAt": {"id": "urn:example:home"}}
    resp = client.post("/expansions", data=json.dumps(document),
                       headers={"Content-Type": "application/json"})

    assert resp.status_code == 200
    assert resp.get_json()["events"] == []
