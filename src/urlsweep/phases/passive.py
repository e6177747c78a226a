from ..utils.http_utils import Fetcher, FetchError, get_session_with_proxy
from collections import namedtuple
import requests

VIRUSTOTAL_URL = "https://www.virustotal.com/vtapi/v2/domain/report"
ALIENVAULT_URL = "https://otx.alienvault.com/api/v1/indicators/domain/{domain}/url_list"
WAYBACK_URL = "https://web.archive.org/cdx/search/cdx"
HUDSONROCK_URL = "https://cavalier.hudsonrock.com/api/json/v2/osint-tools/search-by-domain"

OTX_PAGE_SIZE = 500

# Every querier returns a list of URLs (possibly empty) on success and None on failure.


def select_api_key(keys, key_index):
    if not keys:
        return None
    return keys[key_index % len(keys)]


def _build_request(session, channel, source, url, params=None, headers=None):
    try:
        return session.prepare_request(requests.Request("GET", url, params=params, headers=headers))
    except (requests.exceptions.RequestException, ValueError) as e:
        channel.error(source, f"Failed to create request: {e}")
        return None


def _send(self, session, channel, source, request):
    try:
        return Fetcher(session, channel, source, timeout=self.timeout).send(request)
    except FetchError as e:
        channel.error(source, str(e))
        return None


def _decode_json(channel, source, response):
    try:
        data = response.json()
    except ValueError as e:
        channel.error(source, f"Malformed response: {e}")
        return None
    if not isinstance(data, dict):
        channel.error(source, f"Malformed response: expected a JSON object, got {type(data).__name__}")
        return None
    return data


def passive_virustotal(self, domain, key_index, channel):
    api_key = select_api_key(self.api_keys.get('virustotal'), key_index)
    if not api_key:
        return None

    session = get_session_with_proxy(self)
    request = _build_request(session, channel, "VT", VIRUSTOTAL_URL,
                             params={'apikey': api_key, 'domain': domain})
    if request is None:
        return None

    response = _send(self, session, channel, "VT", request)
    if response is None:
        return None
    data = _decode_json(channel, "VT", response)
    if data is None:
        return None

    urls = []
    if data.get('response_code') == 1:
        for item in data.get('undetected_urls') or []:
            if isinstance(item, list) and item and isinstance(item[0], str) and item[0]:
                urls.append(item[0])
    channel.success("VT", f"Found {len(urls)} URLs")
    return urls


def passive_alienvault(self, domain, key_index, channel):
    """Walks the OTX url_list pages until has_next is false.

    Failing on the first page means the source failed. Failing on a later page
    keeps what the earlier pages returned.
    """
    api_key = select_api_key(self.api_keys.get('alienvault'), key_index)
    headers = {'X-OTX-API-KEY': api_key} if api_key else None

    session = get_session_with_proxy(self)
    url = ALIENVAULT_URL.format(domain=domain)
    all_urls = []
    page = 1
    failed = False
    while True:
        request = _build_request(session, channel, "OTX", url,
                                 params={'limit': OTX_PAGE_SIZE, 'page': page}, headers=headers)
        response = _send(self, session, channel, "OTX", request) if request is not None else None
        data = _decode_json(channel, "OTX", response) if response is not None else None
        if data is None:
            failed = True
            break

        for item in data.get('url_list') or []:
            if isinstance(item, dict) and isinstance(item.get('url'), str) and item['url']:
                all_urls.append(item['url'])
        if not data.get('has_next'):
            break
        page += 1

    if failed and page == 1:
        return None
    channel.success("OTX", f"Found {len(all_urls)} URLs")
    return all_urls


def passive_wayback(self, domain, key_index, channel):
    session = get_session_with_proxy(self)
    request = _build_request(session, channel, "Wayback", WAYBACK_URL, params={
        'url': f"*.{domain}/*",
        'output': 'text',
        'fl': 'original',
        'collapse': 'urlkey',
    })
    if request is None:
        return None

    response = _send(self, session, channel, "Wayback", request)
    if response is None:
        return None

    urls = [line for line in response.text.split("\n") if line.strip()]
    channel.success("Wayback", f"Found {len(urls)} URLs")
    return urls


def passive_hudsonrock(self, domain, key_index, channel):
    api_key = select_api_key(self.api_keys.get('hudsonrock'), key_index)

    session = get_session_with_proxy(self)
    request = _build_request(session, channel, "HudsonRock", HUDSONROCK_URL, params={'domain': domain},
                             headers={'key': api_key} if api_key else None)
    if request is None:
        return None
    if not api_key:
        channel.warning("HudsonRock", "Processing without API key (data may be redacted)...")

    response = _send(self, session, channel, "HudsonRock", request)
    if response is None:
        return None
    data = _decode_json(channel, "HudsonRock", response)
    if data is None:
        return None

    urls = []
    payload = data.get('data') if isinstance(data.get('data'), dict) else {}
    for item in payload.get('all_urls') or []:
        if isinstance(item, dict) and isinstance(item.get('url'), str) and item['url']:
            urls.append(item['url'])
    channel.success("HudsonRock", f"Found {len(urls)} URLs")
    return urls


Source = namedtuple('Source', ['name', 'tag', 'fetch'])

# name is what -e/--exclude matches against, tag prefixes the log lines
SOURCES = [
    Source('vt', 'VT', passive_virustotal),
    Source('otx', 'OTX', passive_alienvault),
    Source('wayback', 'Wayback', passive_wayback),
    Source('hr', 'HudsonRock', passive_hudsonrock),
]
