from ..config import logger, SUCCESS
import os
import signal
import sys


class InterruptHandler:
    """Saves whatever was collected so far when the run is interrupted, then exits.

    Source workers still in flight are abandoned; their results never reach
    the store.
    """

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self, store, output_file, silent=False):
        self.store = store
        self.output_file = output_file
        self.silent = silent
        self._previous = {}

    def install(self):
        for signum in self.SIGNALS:
            self._previous[signum] = signal.signal(signum, self)

    def uninstall(self):
        for signum, handler in self._previous.items():
            signal.signal(signum, handler)
        self._previous = {}

    def __call__(self, signum, frame):
        try:
            self.flush()
        except OSError as e:
            logger.critical(f"[FATAL] Failed to write results on interrupt: {e}")
            self._terminate(1)
        self._terminate(0)

    def flush(self):
        if not self.silent:
            logger.warning("\n [!] Interrupt signal received. Saving results...")
        urls = self.store.flush(self.output_file)
        self.store.write_failed_domains()
        if not self.silent:
            logger.log(SUCCESS, f"[+] Results saved to {self.output_file}")
        return urls

    def _terminate(self, code):
        for handler in logger.handlers:
            handler.flush()
        sys.stdout.flush()
        # os._exit does not wait for the worker threads still blocked on the network
        os._exit(code)
