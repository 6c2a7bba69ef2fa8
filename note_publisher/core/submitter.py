"""Note submitter for the remote content API.

Talks to a GitHub-style "create or update file contents" endpoint:

GET  /repos/{owner}/{repo}/contents/{path}?ref={branch}: current blob SHA
PUT  /repos/{owner}/{repo}/contents/{path}: create or update

Writes use the blob SHA as an optimistic-concurrency token. A write is
retried at most once, and only when it went out without a SHA and without a
preceding lookup. A stale SHA, or a path that appeared after it was looked
up, surfaces as RemoteConflict instead of being overwritten.

Environment variables read by SubmitterConfig.from_env():
    NOTE_PUBLISHER_REPOSITORY: owner/repo
    NOTE_PUBLISHER_BRANCH: target branch (default: main)
    NOTE_PUBLISHER_API_URL: API base URL (default: https://api.github.com)
    NOTE_PUBLISHER_BASE_PATH: directory notes are written under
    GITHUB_TOKEN: API token
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote

import httpx
import yaml

from note_publisher.core.models import (
    AuthFailure,
    CommitRef,
    ContentPayload,
    NoteError,
    NotePublisherError,
    NetworkError,
    Note,
    PublishResult,
    RemoteConflict,
    RemoteError,
    RemoteFile,
    ValidNote,
)
from note_publisher.core.payload import build_payload
from note_publisher.core.validation import DEFAULT_RESERVED_SLUGS, NoteValidator, load_note
from note_publisher.transforms.frontmatter import FrontmatterTransform

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"


class _ShaRequired(RemoteConflict):
    """The API refused a write because the path exists and no SHA was sent."""


@dataclass
class SubmitterConfig:
    """Where and how notes are published."""
    owner: str
    repo: str
    branch: str = "main"
    token: str = field(default="", repr=False)
    api_url: str = DEFAULT_API_URL
    base_path: str = ""
    reserved_slugs: List[str] = field(default_factory=lambda: sorted(DEFAULT_RESERVED_SLUGS))
    timeout: float = 10.0
    lookup_before_write: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SubmitterConfig":
        """Build a config from a mapping.

        Accepts ``repository: owner/repo`` as a shorthand for owner and repo,
        and a single string for ``reserved_slugs``.

        Raises:
            ValueError: on unknown keys or a missing repository
        """
        data = dict(data)
        repository = data.pop('repository', None)
        if repository is not None:
            data['owner'], data['repo'] = _split_repository(repository)
        if isinstance(data.get('reserved_slugs'), str):
            data['reserved_slugs'] = [data['reserved_slugs']]

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        if not data.get('owner') or not data.get('repo'):
            raise ValueError("Config must name a repository (owner and repo)")

        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "SubmitterConfig":
        """Load a config from a YAML file."""
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SubmitterConfig":
        """Build a config from environment variables."""
        env = os.environ if environ is None else environ
        repository = env.get('NOTE_PUBLISHER_REPOSITORY', '')
        if not repository:
            raise ValueError("NOTE_PUBLISHER_REPOSITORY is not set")
        owner, repo = _split_repository(repository)
        return cls(
            owner=owner,
            repo=repo,
            branch=env.get('NOTE_PUBLISHER_BRANCH', 'main'),
            token=env.get('GITHUB_TOKEN', ''),
            api_url=env.get('NOTE_PUBLISHER_API_URL', DEFAULT_API_URL),
            base_path=env.get('NOTE_PUBLISHER_BASE_PATH', ''),
        )


def _split_repository(repository: str) -> Tuple[str, str]:
    owner, _, repo = repository.strip().partition('/')
    if not owner or not repo or '/' in repo:
        raise ValueError(f"Repository must look like owner/repo, got {repository!r}")
    return owner, repo


class NoteSubmitter:
    """Validates notes, builds payloads, and writes them to the remote store.

    Usable as a context manager; the underlying HTTP client is closed on exit.
    """

    def __init__(
        self,
        config: SubmitterConfig,
        frontmatter_transform: Optional[FrontmatterTransform] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize NoteSubmitter.

        Args:
            config: Repository, branch and credentials
            frontmatter_transform: Optional transform applied when building payloads
            transport: Optional httpx transport (used to stub the API in tests)
        """
        self.config = config
        self.validator = NoteValidator(config.reserved_slugs)
        self.frontmatter_transform = frontmatter_transform

        headers = {
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': API_VERSION,
        }
        if config.token:
            headers['Authorization'] = f"Bearer {config.token}"
        self._client = httpx.Client(
            base_url=config.api_url.rstrip('/'),
            headers=headers,
            timeout=config.timeout,
            transport=transport,
        )

    def validate(self, note: Note) -> ValidNote:
        return self.validator.validate(note)

    def build_payload(self, note: ValidNote, sha: Optional[str] = None) -> ContentPayload:
        return build_payload(
            note,
            sha=sha,
            branch=self.config.branch,
            base_path=self.config.base_path,
            frontmatter_transform=self.frontmatter_transform,
        )

    def lookup(self, path: str) -> Optional[RemoteFile]:
        """Return the file currently at ``path`` on the branch, or None."""
        response = self._request('GET', path, params={'ref': self.config.branch})
        if response.status_code == 404:
            logger.debug("%s does not exist on %s", path, self.config.branch)
            return None
        self._raise_for_status(response, path)

        data = response.json()
        if not isinstance(data, dict) or data.get('type', 'file') != 'file':
            raise RemoteError(path, "path exists but is not a file", response.status_code)
        logger.debug("%s is at blob %s", path, data['sha'])
        return RemoteFile(path=path, sha=data['sha'])

    def submit(self, payload: ContentPayload) -> CommitRef:
        """Create or update the file described by ``payload``.

        Without a SHA the current one is looked up first (unless
        lookup_before_write is off). If the API then demands a SHA that no
        lookup has seen, it is fetched and the write retried once.

        Raises:
            RemoteConflict: another writer changed the path first
            AuthFailure: the token was rejected
            NetworkError: the request did not complete
            RemoteError: any other error status
        """
        looked_up = False
        if payload.sha is None and self.config.lookup_before_write:
            remote = self.lookup(payload.path)
            looked_up = True
            if remote is not None:
                payload = payload.as_update(remote.sha)

        try:
            return self._put(payload)
        except _ShaRequired as e:
            if looked_up or payload.is_update:
                logger.warning("Conflict on %s: written by another submitter", payload.path)
                raise RemoteConflict(payload.path, f"path changed after it was read: {e.reason}") from e
            logger.info("%s already exists, fetching its blob SHA", payload.path)

        remote = self.lookup(payload.path)
        if remote is None:
            raise RemoteConflict(payload.path, "path required a SHA but no longer exists")
        logger.info("Retrying %s against blob %s", payload.path, remote.sha)
        try:
            return self._put(payload.as_update(remote.sha))
        except _ShaRequired as e:
            raise RemoteConflict(payload.path, e.reason) from e

    def publish(self, note: Note) -> CommitRef:
        """Validate, build and submit a single note."""
        valid = self.validate(note)
        return self.submit(self.build_payload(valid))

    def publish_all(
        self,
        notes: Iterable[Union[Note, str, Path]],
        dry_run: bool = False,
    ) -> PublishResult:
        """Publish a batch of notes, collecting failures instead of stopping.

        Args:
            notes: Notes, or paths to Markdown files
            dry_run: Validate and build payloads without sending anything

        Returns:
            PublishResult with published titles, commits and failures
        """
        result = PublishResult(dry_run=dry_run)

        for item in notes:
            note_path = str(item) if not isinstance(item, Note) else item.filename
            title = None
            try:
                note = item if isinstance(item, Note) else load_note(item)
                valid = self.validate(note)
                title = valid.title
                payload = self.build_payload(valid)
                if not dry_run:
                    result.commits.append(self.submit(payload))
                result.published_titles.append(valid.title)
            except NotePublisherError as e:
                logger.warning("Failed to publish %s: %s", note_path, e)
                result.failures.append(NoteError(path=note_path, error=str(e), title=title))

        return result

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self.config.owner}/{self.config.repo}/contents/{quote(path)}"

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(method, self._contents_url(path), **kwargs)
        except httpx.TransportError as e:
            raise NetworkError(path, f"{method} failed: {e!r}") from e

    def _put(self, payload: ContentPayload) -> CommitRef:
        response = self._request('PUT', payload.path, json=payload.to_json())
        self._raise_for_status(response, payload.path)

        data = response.json()
        content = data.get('content') or {}
        commit = data.get('commit') or {}
        ref = CommitRef(
            path=content.get('path', payload.path),
            commit_sha=commit.get('sha', ''),
            content_sha=content.get('sha', ''),
            html_url=content.get('html_url'),
            created=response.status_code == 201,
        )
        logger.info(
            "%s %s in commit %s",
            "Created" if ref.created else "Updated",
            ref.path,
            ref.commit_sha[:7],
        )
        return ref

    def _raise_for_status(self, response: httpx.Response, path: str) -> None:
        if response.is_success:
            return

        message = _error_message(response)
        status = response.status_code
        if status in (401, 403):
            raise AuthFailure(path, message)
        if status == 409:
            logger.warning("Conflict on %s: %s", path, message)
            raise RemoteConflict(path, message)
        if status == 422 and 'sha' in message.lower():
            raise _ShaRequired(path, message)
        raise RemoteError(path, message, status)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "NoteSubmitter":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and data.get('message'):
        return str(data['message'])
    return response.text


def create_submitter_from_config(
    config: Union[SubmitterConfig, Dict[str, Any], str, Path],
    frontmatter_transform: Optional[FrontmatterTransform] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> NoteSubmitter:
    """Create a NoteSubmitter from a config object, mapping, or YAML file path."""
    if isinstance(config, (str, Path)):
        config = SubmitterConfig.from_yaml(config)
    elif isinstance(config, dict):
        config = SubmitterConfig.from_dict(config)
    return NoteSubmitter(
        config,
        frontmatter_transform=frontmatter_transform,
        transport=transport,
    )
