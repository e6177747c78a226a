import json
import queue

import requests


def make_response(request, status=200, body=""):
    if isinstance(body, (dict, list)):
        body = json.dumps(body)
    response = requests.Response()
    response.status_code = status
    response._content = body.encode("utf-8") if isinstance(body, str) else body
    response.encoding = "utf-8"
    response.url = request.url
    response.request = request
    return response


class FakeSession(requests.Session):
    """A requests.Session answering from a handler instead of the network.

    The handler gets the prepared request and returns (status, body) or an
    exception instance to raise.
    """

    def __init__(self, handler):
        super().__init__()
        self.handler = handler
        self.sent = []

    def send(self, request, **kwargs):
        self.sent.append(request)
        answer = self.handler(request)
        if isinstance(answer, Exception):
            raise answer
        status, body = answer
        return make_response(request, status, body)


def scripted(*answers):
    """Handler replaying answers in order, the last one repeats."""
    remaining = list(answers)

    def handler(request):
        if len(remaining) > 1:
            return remaining.pop(0)
        return remaining[0]
    return handler


def drain(events):
    collected = []
    while True:
        try:
            event = events.get_nowait()
        except queue.Empty:
            return collected
        if event is not None:
            collected.append(event)


