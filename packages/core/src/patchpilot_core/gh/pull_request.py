from __future__ import annotations

import logging

from github import Github, GithubException

logger = logging.getLogger(__name__)


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_diff(pr) -> list:
    """Changed files with their patches, in the order GitHub reports them.

    PyGithub's PaginatedList walks every page, so large PRs are complete.
    """
    return list(pr.get_files())


def get_text_file(repo, path: str, ref: str | None = None) -> str:
    """Return a repository file decoded as UTF-8, or "" if it is absent.

    A directory (a list of entries) also yields "". Optional files (config,
    prompt addendum, README) are read this way, so absence is never an error.
    """
    try:
        if ref:
            contents = repo.get_contents(path, ref=ref)
        else:
            contents = repo.get_contents(path)
    except GithubException as e:
        if e.status != 404:
            logger.warning("Could not fetch %s: %s", path, e)
        return ""
    if isinstance(contents, list):
        return ""
    return contents.decoded_content.decode("utf-8", errors="replace")
