"""
Settings model — what devstrap installs and where.

Loaded from an optional devstrap.yml.  Every field has a default, so a
missing file simply means "use the built-in workstation profile."
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

# Module order used when building the default lists
DEFAULT_LOCAL_MODULES = ["packages", "dotfiles", "tmux", "shell", "git", "claude"]
DEFAULT_VPS_MODULES = ["packages", "dotfiles", "tmux", "shell", "git", "ssh"]

DEFAULT_PACKAGES: dict[str, list[str]] = {
    "apt": [
        "git", "tmux", "fzf", "ripgrep", "fd-find", "bat", "tree", "htop",
        "jq", "build-essential", "curl", "ca-certificates",
    ],
    "brew": [
        "git", "tmux", "fzf", "ripgrep", "fd", "bat", "tree", "htop",
        "jq", "direnv",
    ],
}

DEFAULT_GIT_CONFIG: dict[str, str] = {
    # Core
    "core.editor": "vim",
    "core.pager": "less -FRX",
    "core.excludesfile": "~/.gitignore_global",
    "core.attributesfile": "~/.gitattributes_global",
    # Color
    "color.branch": "auto",
    "color.diff": "auto",
    "color.grep": "auto",
    "color.interactive": "auto",
    "color.status": "auto",
    "color.push": "auto",
    # Diff / merge
    "diff.tool": "vimdiff",
    "merge.tool": "vimdiff",
    "merge.conflictstyle": "diff3",
    "diff.algorithm": "patience",
    # Push / pull
    "push.default": "simple",
    "push.followTags": "true",
    "pull.rebase": "false",
    # Branch / rebase
    "branch.autosetupmerge": "always",
    "branch.autosetuprebase": "never",
    "rebase.autoStash": "true",
    "status.showUntrackedFiles": "all",
    "log.decorate": "short",
}

DEFAULT_GIT_ALIASES: dict[str, str] = {
    "st": "status -s",
    "stat": "status",
    "info": "remote -v",
    "lg": (
        "log --graph --pretty=format:'%Cred%h%Creset -%C(yellow)%d%Creset %s "
        "%Cgreen(%cr) %C(bold blue)<%an>%Creset' --abbrev-commit"
    ),
    "lol": "log --graph --decorate --pretty=oneline --abbrev-commit",
    "lola": "log --graph --decorate --pretty=oneline --abbrev-commit --all",
    "br": "branch",
    "co": "checkout",
    "cob": "checkout -b",
    "ci": "commit",
    "ca": "commit -a",
    "amend": "commit --amend",
    "amendn": "commit --amend --no-edit",
    "df": "diff",
    "dfc": "diff --cached",
    "aa": "add --all",
    "ap": "add -p",
    "unstage": "reset HEAD --",
    "undo": "reset --soft HEAD~1",
    "sl": "stash list",
    "sp": "stash pop",
    "pl": "pull",
    "ps": "push",
    "psu": "push -u origin",
    "fta": "fetch --all",
    "alias": "config --get-regexp alias",
    "whoami": "config --get-regexp user",
    "recent": "branch --sort=-committerdate",
}


class DotfileLink(BaseModel):
    """A file in the configs directory linked into the home directory.

    Optional links are silently skipped when the source file is absent;
    required ones report a missing source as a module failure.
    """

    source: str                 # relative to the configs directory
    target: str                 # ~-relative target path
    optional: bool = True


DEFAULT_DOTFILES = [
    DotfileLink(source=".tmux.conf", target="~/.tmux.conf"),
    DotfileLink(source=".gitconfig", target="~/.gitconfig"),
    DotfileLink(source=".vimrc", target="~/.vimrc"),
]


class SshSettings(BaseModel):
    """GitHub SSH key parameters."""

    key_name: str = "id_ed25519_github_dev"
    key_type: str = "ed25519"
    email: str | None = None
    alias: str = "github-dev"
    use_alias: bool = True
    host: str = "github.com"
    force: bool = False
    probe: bool = True
    probe_timeout: int = 10


class BootstrapSettings(BaseModel):
    """Root settings document (devstrap.yml)."""

    version: int = 1

    backup_root: str = "~/.bootstrap-backups"
    configs_dir: str | None = None          # default: <settings dir or cwd>/configs

    modules: dict[str, list[str]] = Field(
        default_factory=lambda: {
            "local": list(DEFAULT_LOCAL_MODULES),
            "vps": list(DEFAULT_VPS_MODULES),
        }
    )
    packages: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_PACKAGES.items()}
    )
    dotfiles: list[DotfileLink] = Field(default_factory=lambda: list(DEFAULT_DOTFILES))

    direnv_version: str = "v2.32.3"
    direnv_url: str = "https://github.com/direnv/direnv/releases/download/{version}/direnv.linux-amd64"
    tpm_url: str = "https://github.com/tmux-plugins/tpm"
    download_timeout: int = 30

    git_config: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_GIT_CONFIG))
    git_aliases: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_GIT_ALIASES))

    ssh: SshSettings = Field(default_factory=SshSettings)
    claude_template: str | None = None      # default: configs dir, then bundled

    @field_validator("modules")
    @classmethod
    def _known_roles(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        unknown = sorted(set(value) - {"local", "vps"})
        if unknown:
            raise ValueError(f"unknown role(s) in modules: {', '.join(unknown)}")
        return value

    def default_modules(self, role: str) -> list[str]:
        """Module list for a role (falls back to the built-in defaults)."""
        if role in self.modules:
            return list(self.modules[role])
        return list(DEFAULT_VPS_MODULES if role == "vps" else DEFAULT_LOCAL_MODULES)

    def packages_for(self, manager: str | None) -> list[str]:
        """Package list for a package manager (empty when unknown)."""
        if not manager:
            return []
        return list(self.packages.get(manager, []))

    def direnv_download_url(self) -> str:
        return self.direnv_url.format(version=self.direnv_version)
