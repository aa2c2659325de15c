"""
CardDAV client for fetching raw vCard payloads
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, List, Optional, Union

import requests
from requests.auth import HTTPBasicAuth

from bdayfeed.errors import SourceUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
HTTP_ERROR_THRESHOLD = 400

DAV_NS = 'DAV:'
CARDDAV_NS = 'urn:ietf:params:xml:ns:carddav'

ADDRESSBOOK_QUERY = '''<?xml version="1.0" encoding="utf-8" ?>
<C:addressbook-query xmlns:D="DAV:" xmlns:C="urn:ietf:params:xml:ns:carddav">
    <D:prop>
        <D:getetag />
        <C:address-data />
    </D:prop>
</C:addressbook-query>'''


def is_remote(source: str) -> bool:
    return source.startswith('http://') or source.startswith('https://')


def decode_body(response: requests.Response) -> str:
    """Response text, read as UTF-8 unless the server names a charset"""
    content_type = response.headers.get('Content-Type', '')
    if 'charset' not in content_type.lower():
        return response.content.decode('utf-8', errors='replace')
    return response.text


def extract_address_data(xml_response: Union[bytes, str]) -> List[str]:
    """Collect every address-data fragment of a multistatus response, in order.

    Bytes are handed to the XML parser as-is so the document's own encoding
    declaration applies. Raises ValueError when the body is empty, not XML
    or not a multistatus.
    """
    if isinstance(xml_response, str):
        xml_response = xml_response.encode('utf-8')
    if not xml_response or not xml_response.strip():
        raise ValueError("empty response")

    root = ET.fromstring(xml_response.strip())
    if root.tag != f"{{{DAV_NS}}}multistatus":
        raise ValueError(f"unexpected root element {root.tag}")

    fragments = []
    for node in root.iter(f"{{{CARDDAV_NS}}}address-data"):
        if node.text and node.text.strip():
            fragments.append(node.text.strip())
    return fragments


class CardDAVClient:
    """Reads contacts from a local file, a plain URL or a CardDAV addressbook"""

    def __init__(self, translate: Callable[..., str], timeout: int = DEFAULT_TIMEOUT):
        self.translate = translate
        self.timeout = timeout

    def fetch(self, source: str, username: str = '', password: str = '',
              use_carddav_query: bool = False) -> str:
        """Return the raw vCard payload for a source.

        Raises SourceUnavailable on file, network, authentication or
        response format failures.
        """
        if not is_remote(source):
            return self._read_local(source)

        auth = self._auth(username, password)
        if use_carddav_query:
            return self._query_addressbook(source, auth)
        return self._download(source, auth)

    def _auth(self, username: str, password: str) -> Optional[HTTPBasicAuth]:
        if username and password:
            return HTTPBasicAuth(username, password)
        return None

    def _read_local(self, path: str) -> str:
        logger.info(f"Reading contacts from local file: {path}")
        try:
            return Path(path).read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            logger.error(f"Could not read contacts file {path}: {e}")
            raise SourceUnavailable(self.translate('err_local_file', path)) from e

    def _request(self, method: str, url: str, auth, **kwargs) -> requests.Response:
        try:
            response = requests.request(method, url, auth=auth, timeout=self.timeout,
                                        allow_redirects=True, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"Connection error: {e}")
            raise SourceUnavailable(self.translate('err_http_fetch', 0, str(e))) from e

        logger.info(f"{method} {url} response: {response.status_code}")
        if response.status_code >= HTTP_ERROR_THRESHOLD:
            logger.error(f"Response: {response.text[:500]}")
            raise SourceUnavailable(
                self.translate('err_http_fetch', response.status_code, response.reason or '')
            )
        return response

    def _download(self, url: str, auth) -> str:
        """Plain GET of a .vcf export"""
        response = self._request('GET', url, auth)
        text = decode_body(response)
        logger.debug(f"vCard content preview: {text[:200]}...")
        return text

    def _query_addressbook(self, url: str, auth) -> str:
        """REPORT addressbook-query returning every card of the addressbook"""
        headers = {
            'Content-Type': 'application/xml; charset=utf-8',
            'Depth': '1',
        }
        response = self._request('REPORT', url, auth, headers=headers,
                                 data=ADDRESSBOOK_QUERY.encode('utf-8'))
        logger.debug(f"Raw XML response preview: {response.content[:500]!r}...")

        try:
            fragments = extract_address_data(response.content)
        except (ET.ParseError, ValueError) as e:
            logger.error(f"Invalid addressbook-query response from {url}: {e}")
            raise SourceUnavailable(self.translate('err_carddav_response', str(e))) from e

        logger.info(f"Found {len(fragments)} vCard resources in {url}")
        return '\n'.join(fragments)
