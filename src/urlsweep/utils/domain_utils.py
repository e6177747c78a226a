from ..config import logger
import re

DOMAIN_PATTERN = re.compile(r'([a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,}', re.IGNORECASE)
INVALID_CHARS_PATTERN = re.compile(r'[^a-zA-Z0-9.-]')


def is_valid_domain(domain):
    return DOMAIN_PATTERN.fullmatch(domain) is not None


def clean_domain_line(line):
    """Drops anything that is not a letter, digit, dot or hyphen."""
    return INVALID_CHARS_PATTERN.sub('', line).strip()


def load_domains(lines, silent=False):
    domains = []
    for line in lines:
        line = line.strip()
        if not line:
            continue

        domain = clean_domain_line(line)
        if not domain:
            if not silent:
                logger.warning(" [!] Skipping domain after cleaning resulted in empty string.")
            continue

        if not is_valid_domain(domain):
            if not silent:
                logger.warning(f" [!] Skipping invalid domain format: {domain}")
            continue

        domains.append(domain)
    return domains
