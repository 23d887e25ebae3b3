"""Pytest configuration and fixtures for doc_fetcher tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
import requests

from doc_fetcher.config import FetcherConfig

PDF_BYTES = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<< /Type /Catalog >>\nendobj\n" + b"0" * 20000 + b"\n%%EOF\n"


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, content: bytes = b"", status_code: int = 200, headers: dict = None):
        self.content = content
        self.status_code = status_code
        self.headers = headers or {}
        self.chunk_sizes = []
        self.closed = False

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def iter_content(self, chunk_size: int = 1):
        self.chunk_sizes.append(chunk_size)
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def close(self):
        self.closed = True


class FakeSession:
    """
    Session that answers from a URL → response table.

    Values may be FakeResponse objects or exceptions to raise. Unknown
    URLs raise ConnectionError. Every call is recorded.
    """

    def __init__(self, routes: dict = None):
        self.routes = dict(routes or {})
        self.calls = []
        self.closed = False

    def _answer(self, method: str, url: str, kwargs: dict):
        self.calls.append((method, url, kwargs))
        answer = self.routes.get(url)
        if answer is None:
            raise requests.ConnectionError(f"No route for {url}")
        if isinstance(answer, Exception):
            raise answer
        return answer

    def get(self, url, **kwargs):
        return self._answer("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._answer("POST", url, kwargs)

    def urls(self, method: str = "GET"):
        return [url for m, url, _ in self.calls if m == method]

    def close(self):
        self.closed = True


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory that's cleaned up after the test."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def output_dir(temp_dir: Path) -> Path:
    """Directory the pipeline writes artifacts to."""
    out = temp_dir / "downloads"
    out.mkdir()
    return out


@pytest.fixture
def config(output_dir: Path) -> FetcherConfig:
    """Config writing into the temp output dir, without pacing."""
    return FetcherConfig(output_dir=output_dir, batch_pacing=0)


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES


@pytest.fixture
def arxiv_feed() -> str:
    """arXiv API Atom response for 1706.03762."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <link href="http://arxiv.org/api/query?id_list=1706.03762" rel="self" type="application/atom+xml"/>
  <title type="html">ArXiv Query: search_query=&amp;id_list=1706.03762</title>
  <id>http://arxiv.org/api/abc</id>
  <entry>
    <id>http://arxiv.org/abs/1706.03762v7</id>
    <published>2017-06-12T17:57:34Z</published>
    <title>Attention Is All
      You Need</title>
    <summary>The dominant sequence transduction models...</summary>
    <author><name>Ashish Vaswani</name></author>
  </entry>
</feed>
"""


@pytest.fixture
def browse_listing_html() -> str:
    """arXiv /list page with three papers; the first one is cross-listed twice."""
    return """<html><body>
<h3>New submissions</h3>
<dl id="articles">
  <dt><a name="item1">[1]</a> <a href="/abs/2401.00001" title="Abstract" id="2401.00001">arXiv:2401.00001</a>
      [<a href="/pdf/2401.00001" title="Download PDF">pdf</a>]</dt>
  <dd><div class="meta">
      <div class="list-title mathjax"><span class="descriptor">Title:</span>
        First Paper on
        Things
      </div>
      <div class="list-authors"><a href="/a/smith_j_1">J. Smith</a></div>
  </div></dd>
  <dt><a name="item2">[2]</a> <a href="/abs/2401.00002v2" title="Abstract" id="2401.00002">arXiv:2401.00002</a></dt>
  <dd><div class="meta">
      <div class="list-title mathjax"><span class="descriptor">Title:</span> Second Paper</div>
  </div></dd>
  <dt><a name="item3">[3]</a> <a href="/abs/hep-th/9901001" title="Abstract">arXiv:hep-th/9901001</a></dt>
  <dd><div class="meta">
      <div class="list-title mathjax"><span class="descriptor">Title:</span> An Old Style Paper</div>
  </div></dd>
</dl>
<h3>Cross-lists</h3>
<dl>
  <dt><a name="item4">[4]</a> <a href="/abs/2401.00001" title="Abstract">arXiv:2401.00001</a></dt>
  <dd><div class="meta">
      <div class="list-title mathjax"><span class="descriptor">Title:</span> First Paper on Things</div>
  </div></dd>
</dl>
</body></html>"""


@pytest.fixture
def search_listing_html() -> str:
    """arXiv search results with two papers, the second without a title."""
    return """<html><body>
<ol class="breathe-horizontal">
  <li class="arxiv-result">
    <div class="is-marginless">
      <p class="list-title is-inline-block"><a href="https://arxiv.org/abs/2402.12345">arXiv:2402.12345</a>
        <span>&nbsp;[<a href="https://arxiv.org/pdf/2402.12345">pdf</a>]</span></p>
    </div>
    <p class="title is-5 mathjax">
      Searching   for <span class="search-hit">Things</span>
    </p>
  </li>
  <li class="arxiv-result">
    <div class="is-marginless">
      <p class="list-title is-inline-block"><a href="https://arxiv.org/abs/2402.54321">arXiv:2402.54321</a></p>
    </div>
  </li>
</ol>
</body></html>"""


@pytest.fixture
def article_html() -> str:
    """Article page with metadata, boilerplate, a table, code and images."""
    return """<!DOCTYPE html>
<html><head>
  <title>Test Article</title>
  <meta name="description" content="A short description of the article">
  <meta name="author" content="Jane Doe">
  <meta property="article:published_time" content="2024-01-15">
  <meta name="keywords" content="python, testing ,scraping">
  <script>var tracking = 1;</script>
</head>
<body>
  <nav>Home | About | Contact</nav>
  <div class="sidebar">Sidebar links that should not appear</div>
  <article>
    <h1>Test Article</h1>
    <p>This is the first paragraph of the article. It contains enough text to be
       picked as the main content of the page by the extractor, comfortably.</p>
    <h2>Results</h2>
    <table>
      <thead><tr><th>Name</th><th>Value</th></tr></thead>
      <tbody>
        <tr><td>alpha</td><td>1</td></tr>
        <tr><td>beta</td><td>2</td></tr>
      </tbody>
    </table>
    <ul><li>First point</li><li>Second point</li></ul>
    <pre><code class="language-python">print(x)</code></pre>
    <p><img alt="Diagram" src="/img/diagram.png" title="Figure 1"><img alt="Missing source"></p>
    <div class="comments">Comment text that should not appear</div>
    <script>console.log("inline script");</script>
    <div class="empty-box"><span></span></div>
  </article>
  <footer>Footer text that should not appear</footer>
</body></html>"""
