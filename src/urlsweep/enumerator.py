from .config import logger, KEY_SECTIONS, DEFAULT_OUTPUT_FILE, HTTP_TIMEOUT, REQUEST_DELAY
from .phases.passive import SOURCES
from .results import ResultStore
from .utils.log_utils import LogChannel, LogAggregator

from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor, wait
import os
import queue
import time

DomainOutcome = namedtuple('DomainOutcome', ['domain', 'dispatched', 'succeeded', 'urls'])


def format_duration(seconds):
    seconds = int(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


class UrlEnumerator:
    def __init__(self, domains, api_keys=None, output_file=DEFAULT_OUTPUT_FILE, silent=False, exclude=None,
                 timeout=HTTP_TIMEOUT, request_delay=REQUEST_DELAY, proxy_list_path=None, store=None, sources=None):
        self.domains = list(domains)
        self.api_keys = api_keys if api_keys is not None else {section: [] for section in KEY_SECTIONS}
        self.output_file = output_file
        self.silent = silent
        self.exclude = {name.strip().lower() for name in (exclude or []) if name.strip()}
        self.timeout = timeout
        self.request_delay = request_delay
        self.proxy_list_path = proxy_list_path
        self.sources = list(sources) if sources is not None else list(SOURCES)
        self.store = store if store is not None else ResultStore()

        # Round-robin position in every key list, moves by one per domain
        self.key_index = 0

        self.proxies = self._load_proxies()

    def _load_proxies(self):
        """Loads proxies from a file (one per line) or returns [None] for direct connection."""
        if not self.proxy_list_path:
            return [None]
        if not os.path.exists(self.proxy_list_path):
            logger.warning(f" [!] Proxy list {self.proxy_list_path} not found. Continuing without proxies.")
            return [None]

        with open(self.proxy_list_path, 'r') as f:
            proxies = [line.strip() for line in f if line.strip()]

        if not proxies:
            logger.warning(" [!] Proxy file is empty. Continuing without proxies.")
            proxies = [None]
        elif not self.silent:
            logger.info(f"[*] Loaded {len(proxies)} proxies from {self.proxy_list_path}.")
        return proxies

    def enabled_sources(self):
        return [source for source in self.sources if source.name not in self.exclude]

    def _run_source(self, source, domain, key_index, results, channel):
        urls = None
        try:
            urls = source.fetch(self, domain, key_index, channel)
        except Exception as e:
            channel.error(source.tag, f"Unexpected error: {e}")
            logger.debug(f"[{source.tag}] {domain}: unexpected error", exc_info=True)
        finally:
            # Exactly one message per dispatched source, whatever happened
            results.put((source.name, urls))

    def process_domain(self, domain):
        sources = self.enabled_sources()
        key_index = self.key_index
        results = queue.Queue()
        events = queue.Queue()
        channel = LogChannel(events, silent=self.silent)

        aggregator = LogAggregator(events)
        aggregator.start()

        if not sources:
            if not self.silent:
                logger.info(f"[*] No sources selected for domain: {domain}")
        else:
            with ThreadPoolExecutor(max_workers=len(sources), thread_name_prefix="urlsweep-source") as executor:
                futures = [executor.submit(self._run_source, source, domain, key_index, results, channel)
                           for source in sources]
                wait(futures)

        # Every log line of this domain is out before its outcome is decided
        channel.close()
        aggregator.join()

        succeeded = False
        found = []
        while True:
            try:
                _name, urls = results.get_nowait()
            except queue.Empty:
                break
            if urls is not None:
                succeeded = True
                found.extend(urls)

        self.store.add_urls(found)
        if sources and not succeeded:
            self.store.mark_failed(domain)

        self.key_index += 1
        return DomainOutcome(domain, len(sources), succeeded, found)

    def run(self):
        total = len(self.domains)
        for i, domain in enumerate(self.domains):
            if not self.silent:
                percentage = (i + 1) / total * 100
                logger.info(f"[*] Processing domain {i + 1}/{total} ({percentage:.2f}%): {domain}")

            self.process_domain(domain)

            if i < total - 1:
                if not self.silent:
                    remaining = (total - (i + 1)) * self.request_delay
                    logger.info(f"[*] Waiting for {format_duration(self.request_delay)} before next domain. "
                                f"Estimated time remaining: {format_duration(remaining)}")
                time.sleep(self.request_delay)

        return self.store.finalize(self.output_file, self.silent)
