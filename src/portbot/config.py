"""Bot configuration from environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path

from portbot.integrations.git.types import GitIdentity

DEFAULT_LABELS = (
    "NeedsWebsiteDocsUpdate",
    "NeedsDescriptionUpdate",
    "NeedsIssue",
)

DEFAULT_REVIEW_CHECKLIST = """\
## Review Checklist

Hello reviewers! :wave: Please follow this checklist when reviewing this Pull Request.

#### General
- [ ] Ensure that the Pull Request has a descriptive title.
- [ ] Ensure there is a link to an issue (except for internal cleanup and flaky test fixes).

#### Tests
- [ ] Tests were added or are not required.

#### Documentation
- [ ] Documentation was added or is not required.

#### Backports
- [ ] Add `Backport to: <branch>` labels for every maintenance branch that needs this change.
"""


def _parse_labels(raw: str | None) -> tuple[str, ...]:
    if raw is None:
        return DEFAULT_LABELS
    return tuple(label.strip() for label in raw.split(",") if label.strip())


def _load_checklist(path: str | None) -> str:
    if path is None:
        return DEFAULT_REVIEW_CHECKLIST
    return Path(path).read_text(encoding="utf-8")


@dataclass(frozen=True)
class BotConfig:
    """Bot configuration loaded from environment variables."""

    host: str
    port: int
    debug: bool
    workdir: Path
    clone_url_template: str
    bot_identity: GitIdentity
    command_timeout: float
    port_deadline: float
    default_labels: tuple[str, ...]
    review_checklist: str

    def clone_url(self, owner: str, repo: str) -> str:
        """URL the working copy of owner/repo is cloned from."""
        return self.clone_url_template.format(owner=owner, repo=repo)

    def clone_dir(self, owner: str, repo: str) -> Path:
        """Local working copy location for owner/repo."""
        return self.workdir / owner / repo

    @staticmethod
    def from_env() -> "BotConfig":
        """Load configuration from environment variables.

        Raises:
            OSError: If PORTBOT_REVIEW_CHECKLIST names an unreadable file
            ValueError: If a numeric variable does not parse
        """
        return BotConfig(
            host=os.environ.get("PORTBOT_HOST", "0.0.0.0"),
            port=int(os.environ.get("PORTBOT_PORT", "8000")),
            debug=os.environ.get("PORTBOT_DEBUG", "false").lower() == "true",
            workdir=Path(os.environ.get("PORTBOT_WORKDIR", "/tmp/portbot")),
            clone_url_template=os.environ.get(
                "PORTBOT_CLONE_URL", "git@github.com:{owner}/{repo}.git"
            ),
            bot_identity=GitIdentity(
                name=os.environ.get("PORTBOT_BOT_NAME", "vitess-bot[bot]"),
                email=os.environ.get(
                    "PORTBOT_BOT_EMAIL",
                    "108069721+vitess-bot[bot]@users.noreply.github.com",
                ),
            ),
            command_timeout=float(os.environ.get("PORTBOT_COMMAND_TIMEOUT", "300")),
            port_deadline=float(os.environ.get("PORTBOT_PORT_DEADLINE", "1800")),
            default_labels=_parse_labels(os.environ.get("PORTBOT_DEFAULT_LABELS")),
            review_checklist=_load_checklist(os.environ.get("PORTBOT_REVIEW_CHECKLIST")),
        )

    @staticmethod
    def for_test(workdir: Path = Path("/tmp/portbot-test")) -> "BotConfig":
        """Configuration with fixed values, independent of the environment."""
        return BotConfig(
            host="127.0.0.1",
            port=8000,
            debug=False,
            workdir=workdir,
            clone_url_template="git@github.com:{owner}/{repo}.git",
            bot_identity=GitIdentity(name="port-bot[bot]", email="port-bot@example.com"),
            command_timeout=30.0,
            port_deadline=600.0,
            default_labels=DEFAULT_LABELS,
            review_checklist=DEFAULT_REVIEW_CHECKLIST,
        )
