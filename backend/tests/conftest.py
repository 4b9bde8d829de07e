"""Shared doubles for the antenna tests: an in-memory Mongo collection and a recording notifier."""
import pytest
from pymongo.errors import PyMongoError

from antenna.errors import TransportError


def _matches(doc, query):
    return all(doc.get(k) == v for k, v in query.items())


def _project(doc, projection):
    if not projection:
        return dict(doc)
    included = [k for k, v in projection.items() if v and k != "_id"]
    if included:
        return {k: doc[k] for k in included if k in doc}
    return {k: v for k, v in doc.items() if k not in projection}


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs

    def sort(self, key, direction=1):
        self.docs = sorted(self.docs, key=lambda d: d.get(key, ""), reverse=direction < 0)
        return self

    async def to_list(self, length):
        return self.docs[:length] if length else list(self.docs)


class FakeCollection:
    """The slice of motor's collection API used by the app."""

    def __init__(self):
        self.docs = []
        self.indexes = []
        self.fail_find = False
        self.fail_update = False
        self.find_calls = 0

    async def create_index(self, key, unique=False):
        self.indexes.append((key, unique))
        return f"{key}_1"

    async def find_one(self, query, projection=None):
        self.find_calls += 1
        if self.fail_find:
            raise PyMongoError("lookup unavailable")
        for doc in self.docs:
            if _matches(doc, query):
                return _project(doc, projection)
        return None

    async def insert_one(self, doc):
        self.docs.append(dict(doc))

    async def update_one(self, query, update, upsert=False):
        if self.fail_update:
            raise PyMongoError("write unavailable")
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(update.get("$set", {}))
                return
        if upsert:
            doc = dict(query)
            doc.update(update.get("$setOnInsert", {}))
            doc.update(update.get("$set", {}))
            self.docs.append(doc)

    def find(self, query=None, projection=None):
        docs = [_project(d, projection) for d in self.docs if _matches(d, query or {})]
        return FakeCursor(docs)


class FakeDb(dict):
    def __missing__(self, name):
        self[name] = FakeCollection()
        return self[name]


class RecordingNotifier:
    """Records deliveries; raises TransportError for bodies in ``fail_on``."""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.sent = []
        self.attempts = []

    async def send_update(self, update):
        self.attempts.append(update)
        if update.body in self.fail_on:
            raise TransportError(f"webhook rejected '{update.body}'")
        self.sent.append(update)


def board_html(*cells, anchor=True, extra_tables=""):
    """A terminal-like page: one table whose cells are (title, dots, body) triples."""
    rows = []
    if anchor:
        rows.append("<td>DD/MM HH:MM<span>.....</span>Scroll to the right to read!</td>")
    for title, body in cells:
        rows.append(f"<td>{title}<span>.....</span>{body}</td>")
    return (
        "<html><body>"
        f"{extra_tables}"
        f"<table><tr>{''.join(rows)}</tr></table>"
        "</body></html>"
    )


def page_fetcher(html):
    calls = []

    async def fetch(url):
        calls.append(url)
        return html

    fetch.calls = calls
    return fetch


@pytest.fixture
def collection():
    return FakeCollection()


@pytest.fixture
def notifier():
    return RecordingNotifier()
