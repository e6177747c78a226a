from ..config import logger, SUCCESS
from colorama import Fore
from collections import namedtuple
import logging
import threading

LogEvent = namedtuple('LogEvent', ['severity', 'source', 'message'])

SEVERITY_LEVELS = {
    'INFO': logging.INFO,
    'SUCCESS': SUCCESS,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
}

SEVERITY_COLORS = {
    'SUCCESS': Fore.GREEN,
    'ERROR': Fore.RED,
    'WARNING': Fore.YELLOW,
}


class LogChannel:
    """Producer side of a per-domain log queue, shared by all source workers."""

    def __init__(self, events, silent=False):
        self.events = events
        self.silent = silent

    def emit(self, severity, source, message):
        # Silent runs never produce events, nothing is buffered for later
        if self.silent:
            return
        self.events.put(LogEvent(severity, source, message))

    def info(self, source, message):
        self.emit('INFO', source, message)

    def success(self, source, message):
        self.emit('SUCCESS', source, message)

    def warning(self, source, message):
        self.emit('WARNING', source, message)

    def error(self, source, message):
        self.emit('ERROR', source, message)

    def close(self):
        self.events.put(None)


class LogAggregator(threading.Thread):
    """Single consumer of a log queue. Stops on the None sentinel put by LogChannel.close()."""

    def __init__(self, events):
        super().__init__(name="urlsweep-log", daemon=True)
        self.events = events
        self.handled = 0

    def run(self):
        while True:
            event = self.events.get()
            if event is None:
                break
            write_event(event)
            self.handled += 1


def write_event(event):
    level = SEVERITY_LEVELS.get(event.severity, logging.INFO)
    color = SEVERITY_COLORS.get(event.severity, '')
    logger.log(level, f"[{event.source}] {event.message}", extra={'color': color})
