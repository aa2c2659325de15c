from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pytest
import requests

from bdayfeed import cardav_client
from bdayfeed.cardav_client import CardDAVClient, extract_address_data
from bdayfeed.errors import SourceUnavailable

MULTISTATUS = """<?xml version="1.0" encoding="utf-8"?>
<d:multistatus xmlns:d="DAV:" xmlns:card="urn:ietf:params:xml:ns:carddav">
  <d:response>
    <d:href>/addressbooks/me/default/a.vcf</d:href>
    <d:propstat>
      <d:prop>
        <d:getetag>"1"</d:getetag>
        <card:address-data>BEGIN:VCARD
FN:Alice
BDAY:1990-01-01
END:VCARD</card:address-data>
      </d:prop>
    </d:propstat>
  </d:response>
  <d:response>
    <d:href>/addressbooks/me/default/b.vcf</d:href>
    <d:propstat>
      <d:prop>
        <d:getetag>"2"</d:getetag>
        <card:address-data><![CDATA[BEGIN:VCARD
FN:Bob & Co
BDAY:--03-04
END:VCARD]]></card:address-data>
      </d:prop>
    </d:propstat>
  </d:response>
</d:multistatus>"""


def fake_translate(key: str, *args) -> str:
    return " ".join([key, *[str(a) for a in args]])


@dataclass
class FakeResponse:
    status_code: int = 200
    text: str = ""
    reason: str = "OK"
    headers: dict = field(default_factory=dict)
    content: Optional[bytes] = None

    def __post_init__(self) -> None:
        if self.content is None:
            self.content = self.text.encode("utf-8")


@dataclass
class FakeRequests:
    response: FakeResponse
    calls: list = field(default_factory=list)

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        return self.response


def install(monkeypatch, response: FakeResponse) -> FakeRequests:
    fake = FakeRequests(response)
    monkeypatch.setattr(cardav_client.requests, "request", fake)
    return fake


def test_reads_local_file(tmp_path: Path) -> None:
    path = tmp_path / "contacts.vcf"
    path.write_text("BEGIN:VCARD\nEND:VCARD\n", encoding="utf-8")

    client = CardDAVClient(fake_translate)

    assert client.fetch(str(path)) == "BEGIN:VCARD\nEND:VCARD\n"


def test_missing_local_file_raises(tmp_path: Path) -> None:
    client = CardDAVClient(fake_translate)

    with pytest.raises(SourceUnavailable, match="err_local_file"):
        client.fetch(str(tmp_path / "absent.vcf"))


def test_plain_download_with_basic_auth(monkeypatch) -> None:
    fake = install(monkeypatch, FakeResponse(text="BEGIN:VCARD\nEND:VCARD"))
    client = CardDAVClient(fake_translate, timeout=5)

    payload = client.fetch("https://example.com/contacts.vcf", "user", "secret")

    method, url, kwargs = fake.calls[0]
    assert payload == "BEGIN:VCARD\nEND:VCARD"
    assert method == "GET"
    assert url == "https://example.com/contacts.vcf"
    assert kwargs["timeout"] == 5
    assert kwargs["auth"].username == "user"
    assert kwargs["auth"].password == "secret"


def test_no_auth_without_both_credentials(monkeypatch) -> None:
    fake = install(monkeypatch, FakeResponse(text=""))

    CardDAVClient(fake_translate).fetch("http://example.com/c.vcf", "user", "")

    assert fake.calls[0][2]["auth"] is None


def test_http_error_status_raises(monkeypatch) -> None:
    install(monkeypatch, FakeResponse(status_code=401, reason="Unauthorized"))

    with pytest.raises(SourceUnavailable, match="401"):
        CardDAVClient(fake_translate).fetch("https://example.com/c.vcf")


def test_network_failure_raises(monkeypatch) -> None:
    def timeout(*args, **kwargs):
        raise requests.exceptions.Timeout("timed out")

    monkeypatch.setattr(cardav_client.requests, "request", timeout)

    with pytest.raises(SourceUnavailable, match="timed out"):
        CardDAVClient(fake_translate).fetch("https://example.com/c.vcf")


def test_addressbook_query_concatenates_fragments(monkeypatch) -> None:
    fake = install(monkeypatch, FakeResponse(status_code=207, text=MULTISTATUS))

    payload = CardDAVClient(fake_translate).fetch(
        "https://dav.example.com/addressbooks/me/default/", use_carddav_query=True
    )

    method, _, kwargs = fake.calls[0]
    assert method == "REPORT"
    assert kwargs["headers"]["Depth"] == "1"
    assert b"addressbook-query" in kwargs["data"]
    assert payload == (
        "BEGIN:VCARD\nFN:Alice\nBDAY:1990-01-01\nEND:VCARD\n"
        "BEGIN:VCARD\nFN:Bob & Co\nBDAY:--03-04\nEND:VCARD"
    )


@pytest.mark.parametrize("body", ["", "   ", "<not-xml", "<d:error xmlns:d=\"DAV:\"/>"])
def test_malformed_or_empty_multistatus_raises(monkeypatch, body: str) -> None:
    install(monkeypatch, FakeResponse(status_code=207, text=body))

    with pytest.raises(SourceUnavailable, match="err_carddav_response"):
        CardDAVClient(fake_translate).fetch("https://dav.example.com/ab/", use_carddav_query=True)


def test_multistatus_without_cards_is_empty_payload() -> None:
    body = '<d:multistatus xmlns:d="DAV:"><d:response><d:href>/ab/</d:href></d:response></d:multistatus>'

    assert extract_address_data(body) == []


def test_download_without_charset_is_read_as_utf8(monkeypatch) -> None:
    body = "BEGIN:VCARD\nFN:Émilie Noël\nBDAY:1990-01-01\nEND:VCARD".encode("utf-8")
    # requests falls back to ISO-8859-1 for text/* without a charset
    install(monkeypatch, FakeResponse(
        content=body,
        text=body.decode("iso-8859-1"),
        headers={"Content-Type": "text/vcard"},
    ))

    payload = CardDAVClient(fake_translate).fetch("https://example.com/contacts.vcf")

    assert "FN:Émilie Noël" in payload


def test_download_honours_declared_charset(monkeypatch) -> None:
    body = "FN:Zoë".encode("iso-8859-1")
    install(monkeypatch, FakeResponse(
        content=body,
        text=body.decode("iso-8859-1"),
        headers={"Content-Type": "text/vcard; charset=ISO-8859-1"},
    ))

    assert CardDAVClient(fake_translate).fetch("https://example.com/c.vcf") == "FN:Zoë"


def test_addressbook_query_reads_utf8_multistatus_bytes(monkeypatch) -> None:
    body = MULTISTATUS.replace("FN:Alice", "FN:Åsa Öberg").encode("utf-8")
    install(monkeypatch, FakeResponse(
        status_code=207,
        content=body,
        text=body.decode("iso-8859-1"),
        headers={"Content-Type": "application/xml"},
    ))

    payload = CardDAVClient(fake_translate).fetch(
        "https://dav.example.com/addressbooks/me/default/", use_carddav_query=True
    )

    assert payload.startswith("BEGIN:VCARD\nFN:Åsa Öberg\n")
