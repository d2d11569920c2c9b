from __future__ import annotations

import pytest

from fakes import FakeGitHubClient
from issue_upvotes.models import RepoRef


@pytest.fixture
def repo() -> RepoRef:
    return RepoRef(owner="octo", name="widgets")


@pytest.fixture
def fake_client() -> FakeGitHubClient:
    return FakeGitHubClient()
