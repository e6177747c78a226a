from ..config import USER_AGENTS, RETRY_ATTEMPTS, RETRY_DELAY, HTTP_TIMEOUT
from ..config import logger
import random
import requests
import backoff


class FetchError(Exception):
    pass


class ClientError(FetchError):
    def __init__(self, response):
        self.response = response
        super().__init__(f"request rejected with HTTP {response.status_code}")


class RetryableStatusError(FetchError):
    def __init__(self, response):
        self.response = response
        super().__init__(f"server answered HTTP {response.status_code}")


def get_session_with_proxy(self):
    session = requests.Session()
    session.headers.update({'User-Agent': random.choice(USER_AGENTS)})

    proxy_url = random.choice(self.proxies)
    if proxy_url:
        session.proxies = {'http': proxy_url, 'https': proxy_url}

    return session


def is_retryable_status(status_code):
    # 429 is a rate limit, it clears up like a server error does
    return status_code == 429 or 500 <= status_code <= 599


def _on_retry(details):
    fetcher = details['args'][0]
    fetcher.channel.warning(
        fetcher.source,
        f"Request failed (attempt {details['tries']}/{RETRY_ATTEMPTS}): {details.get('exception')}. "
        f"Retrying in {details['wait']:g}s...")


def _on_giveup(details):
    fetcher = details['args'][0]
    fetcher.channel.warning(
        fetcher.source,
        f"Request failed (attempt {details['tries']}/{RETRY_ATTEMPTS}): {details.get('exception')}. Giving up.")


class Fetcher:
    """Sends one prepared request, retrying transport and server errors.

    Client errors (4xx except 429) are final and raised right away as
    ClientError. Exhausted retries raise FetchError chained to the last error.
    """

    def __init__(self, session, channel, source, timeout=HTTP_TIMEOUT):
        self.session = session
        self.channel = channel
        self.source = source
        self.timeout = timeout
        self.attempts = 0

    @backoff.on_exception(backoff.constant,
                          (requests.exceptions.RequestException, RetryableStatusError),
                          max_tries=RETRY_ATTEMPTS, interval=RETRY_DELAY, jitter=None,
                          on_backoff=_on_retry, on_giveup=_on_giveup, logger=None)
    def _attempt(self, request):
        self.attempts += 1
        logger.debug(f"[{self.source}] GET {request.url} (attempt {self.attempts})")
        response = self.session.send(request, timeout=self.timeout)
        if is_retryable_status(response.status_code):
            raise RetryableStatusError(response)
        if 400 <= response.status_code < 500:
            raise ClientError(response)
        return response

    def send(self, request):
        try:
            return self._attempt(request)
        except ClientError as e:
            self.channel.warning(self.source, f"Request failed (attempt {self.attempts}/{RETRY_ATTEMPTS}): {e}.")
            self.channel.error(self.source, f"Client error {e.response.status_code}, not retrying.")
            raise
        except (requests.exceptions.RequestException, RetryableStatusError) as e:
            raise FetchError(f"request failed after {RETRY_ATTEMPTS} attempts: {e}") from e
