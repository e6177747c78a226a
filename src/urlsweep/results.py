from .config import logger, SUCCESS, FAILED_DOMAINS_FILE
from .utils.output_utils import write_lines_to_file


class ResultStore:
    """Every URL found during the run plus the domains no source could answer for.

    Only the driver thread mutates it, between two domains. Both collections
    only ever grow, so a snapshot taken at any moment is a valid result.
    """

    def __init__(self, failed_domains_file=FAILED_DOMAINS_FILE):
        self.urls = set()
        self.failed_domains = []
        self.failed_domains_file = failed_domains_file

    def add_urls(self, urls):
        self.urls.update(urls)

    def mark_failed(self, domain):
        self.failed_domains.append(domain)

    def snapshot(self):
        return sorted(self.urls)

    def write_failed_domains(self):
        if not self.failed_domains:
            return False
        failed = list(self.failed_domains)
        logger.warning(f" [!] {len(failed)} domains failed to process and were saved to {self.failed_domains_file}")
        write_lines_to_file(self.failed_domains_file, failed)
        return True

    def flush(self, output_path):
        urls = self.snapshot()
        write_lines_to_file(output_path, urls)
        return urls

    def finalize(self, output_path, silent=False):
        urls = self.snapshot()
        self.write_failed_domains()

        if silent:
            for url in urls:
                print(url)
        else:
            write_lines_to_file(output_path, urls)
            logger.log(SUCCESS, f"[+] All done! Found {len(urls)} unique URLs. Results saved to {output_path}")
        return urls
