"""Shared fixtures.

Provides an in-memory content graph, a recording process runner and a
default profile, so pipeline tests never touch pandoc.
"""

from pathlib import PurePosixPath

import pytest

from mdtex.core.graph.base import ContentGraph
from mdtex.core.graph.vault import link_candidates, normalize_link_path
from mdtex.core.process.base import ProcessRunner
from mdtex.models.build import ProcessResult
from mdtex.models.profile import Profile
from mdtex.utils.exceptions import DocumentReadError


class InMemoryGraph(ContentGraph):
    """Content graph backed by a dict of document id -> text."""

    def __init__(self, documents: dict[str, str] | None = None, unreadable: set[str] | None = None):
        self.documents = dict(documents or {})
        self.unreadable = set(unreadable or ())
        self.reads: list[str] = []

    async def resolve_link(self, reference: str, base_path: str) -> str | None:
        link = normalize_link_path(reference)
        base_dir = PurePosixPath(base_path).parent
        for candidate in link_candidates(link):
            for joined in ((base_dir / candidate).as_posix(), candidate):
                if joined in self.documents:
                    return joined
        return None

    async def read_document(self, doc_id: str) -> str:
        self.reads.append(doc_id)
        if doc_id in self.unreadable or doc_id not in self.documents:
            raise DocumentReadError(f"Failed to read document: {doc_id}")
        return self.documents[doc_id]

    async def list_documents(self, search_root: str | None = None) -> list[str]:
        ids = sorted(self.documents)
        if search_root:
            prefix = search_root.strip("/") + "/"
            ids = [doc_id for doc_id in ids if doc_id.startswith(prefix)]
        return ids


class FakeProcessRunner(ProcessRunner):
    """Records invocations and returns a canned result."""

    def __init__(self, result: ProcessResult | None = None, error: Exception | None = None, on_run=None):
        self.result = result or ProcessResult(exit_code=0)
        self.error = error
        self.on_run = on_run
        self.calls: list[dict] = []

    async def run(
        self,
        command,
        args,
        cwd=None,
        env=None,
        stdin=None,
        on_stdout=None,
        on_stderr=None,
    ) -> ProcessResult:
        self.calls.append({"command": command, "args": list(args), "cwd": cwd, "stdin": stdin})
        if self.error:
            raise self.error
        if self.on_run:
            self.on_run(command, list(args), cwd)
        if on_stdout and self.result.stdout:
            on_stdout(self.result.stdout)
        if on_stderr and self.result.stderr:
            on_stderr(self.result.stderr)
        return self.result


@pytest.fixture
def profile() -> Profile:
    """Default profile."""
    return Profile()


@pytest.fixture
def graph() -> InMemoryGraph:
    """Small vault with notes, sections and images."""
    return InMemoryGraph(
        {
            "main.md": "# Main\n\n![[chapter]]\n",
            "chapter.md": "Chapter body\n",
            "notes/section.md": (
                "# Intro\nintro text\n## Detail\ndetail text\n# Outro\noutro text\n"
                "A key sentence ^key1\n"
            ),
            "images/diagram.png": "",
            "images/My Photo.JPG": "",
        }
    )


@pytest.fixture
def runner() -> FakeProcessRunner:
    """Runner that reports success."""
    return FakeProcessRunner()


@pytest.fixture
def make_graph():
    """Factory for in-memory graphs with custom documents."""
    return InMemoryGraph


@pytest.fixture
def make_runner():
    """Factory for recording runners with custom results."""
    return FakeProcessRunner
