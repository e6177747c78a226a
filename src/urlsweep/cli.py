import argparse
import sys
from urlsweep import __version__
from urlsweep.config import logger, setup_logging, load_api_keys, ConfigError
from urlsweep.config import DEFAULT_OUTPUT_FILE, HTTP_TIMEOUT, REQUEST_DELAY
from urlsweep.enumerator import UrlEnumerator
from urlsweep.phases.passive import SOURCES
from urlsweep.results import ResultStore
from urlsweep.utils.domain_utils import load_domains
from urlsweep.utils.output_utils import read_lines_from_file, read_lines_from_stdin
from urlsweep.utils.signal_utils import InterruptHandler

BANNER = r"""
            _
 _   _ _ __| |_____      _____  ___ _ __
| | | | '__| / __\ \ /\ / / _ \/ _ \ '_ \
| |_| | |  | \__ \ \ V  V /  __/  __/ |_) |
 \__,_|_|  |_|___/  \_/\_/ \___|\___| .__/
                                    |_|
"""


def build_parser():
    source_names = ", ".join(source.name for source in SOURCES)
    parser = argparse.ArgumentParser(description="Collects historical URLs for a list of domains from VirusTotal, AlienVault OTX, "
                                                 "the Wayback Machine and HudsonRock.",
                                     formatter_class=argparse.RawTextHelpFormatter)
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT_FILE, help=f"Path to the output file (default: {DEFAULT_OUTPUT_FILE}).")
    parser.add_argument("-d", "--domains", default="", help="Path to a file with one domain per line. If empty, reads from stdin.")
    parser.add_argument("--silent", action="store_true", help="Silent mode: only print the discovered URLs to stdout.")
    parser.add_argument("-e", "--exclude", default="", help=f"Comma-separated list of sources to exclude ({source_names}).")
    parser.add_argument("-c", "--config", help="Path to the YAML file with API keys (default: ~/.config/urlsweep/config.yaml).")
    parser.add_argument("-p", "--proxies", help="Path to a file containing proxies (e.g., http://user:pass@ip:port), one per line.")
    parser.add_argument("--timeout", type=int, default=HTTP_TIMEOUT, help=f"Request timeout in seconds (default: {HTTP_TIMEOUT}).")
    parser.add_argument("--delay", type=float, default=REQUEST_DELAY, help=f"Delay between two domains in seconds (default: {REQUEST_DELAY}).\n"
                                                                          "Lowering it will get you rate limited by the free API tiers.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging (display debug messages).")
    parser.add_argument("--version", action="store_true", help="Print the version of the tool.")
    return parser


def parse_exclude(value):
    known = {source.name for source in SOURCES}
    excluded = [name.strip().lower() for name in value.split(",") if name.strip()]
    for name in excluded:
        if name not in known:
            logger.warning(f" [!] Unknown source '{name}' in exclude list, ignoring it.")
    return excluded


def read_domains(path, silent=False):
    if path:
        return read_lines_from_file(path)
    if not silent:
        logger.info("[*] Reading domains from stdin...")
    return read_lines_from_stdin()


def fatal(message):
    logger.critical(f"[FATAL] {message}")
    sys.exit(1)


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"urlsweep version: {__version__}")
        return

    setup_logging(silent=args.silent, verbose=args.verbose)
    if not args.silent:
        print(BANNER)

    try:
        api_keys = load_api_keys(args.config, silent=args.silent)
    except ConfigError as e:
        fatal(e)

    try:
        lines = read_domains(args.domains, silent=args.silent)
    except OSError as e:
        fatal(f"Failed to read domains: {e}")

    domains = load_domains(lines, silent=args.silent)
    if not domains:
        fatal("No domains provided for scanning.")
    if not args.silent:
        logger.info(f"[*] Loaded {len(domains)} domains.")

    store = ResultStore()
    handler = InterruptHandler(store, args.output, silent=args.silent)
    handler.install()

    enumerator = UrlEnumerator(
        domains=domains,
        api_keys=api_keys,
        output_file=args.output,
        silent=args.silent,
        exclude=parse_exclude(args.exclude),
        timeout=args.timeout,
        request_delay=args.delay,
        proxy_list_path=args.proxies,
        store=store,
    )
    try:
        enumerator.run()
    except OSError as e:
        fatal(f"Failed to write results: {e}")
    finally:
        handler.uninstall()


if __name__ == "__main__":
    main()
