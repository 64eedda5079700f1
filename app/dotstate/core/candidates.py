"""Curated list of well-known dotfiles.

These are the paths offered when scanning a home directory for files
worth syncing. Anything synced outside this list is remembered in the
config's ``custom_files``.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DotfileCandidate:
    """A well-known dotfile.

    Attributes:
        path: Home-relative path.
        description: One-line explanation shown when listing candidates.
    """

    path: str
    description: str


# Immutable tuple, grouped by tool family.
DEFAULT_DOTFILES: tuple[DotfileCandidate, ...] = (
    # Shell & environment
    DotfileCandidate(
        ".profile",
        "Login shell initialization file used by POSIX-compatible shells. Common place for "
        "environment variables.",
    ),
    DotfileCandidate(
        ".bashrc",
        "Bash configuration for interactive shells. Aliases, functions, and shell behavior live "
        "here.",
    ),
    DotfileCandidate(
        ".bash_profile",
        "Bash login shell configuration, commonly used on macOS.",
    ),
    DotfileCandidate(
        ".bash_logout",
        "Commands executed when a Bash login shell exits.",
    ),
    DotfileCandidate(
        ".zshrc",
        "Zsh configuration for interactive shells. Aliases, prompt setup, plugins.",
    ),
    DotfileCandidate(
        ".zprofile",
        "Zsh login shell configuration. Often used for PATH and environment setup.",
    ),
    DotfileCandidate(
        ".zshenv",
        "Zsh environment configuration executed for all shell invocations.",
    ),
    DotfileCandidate(
        ".p10k.zsh",
        "Powerlevel10k prompt configuration for Zsh.",
    ),
    DotfileCandidate(
        ".oh-my-zsh",
        "Oh My Zsh framework directory containing themes and plugins.",
    ),
    DotfileCandidate(
        ".inputrc",
        "Readline configuration affecting Bash, Python REPL, and other readline-based tools.",
    ),
    DotfileCandidate(
        ".dircolors",
        "Color configuration for ls and other GNU coreutils.",
    ),
    # Editors
    DotfileCandidate(
        ".vimrc",
        "Vim editor configuration file.",
    ),
    DotfileCandidate(
        ".config/nvim",
        "Neovim configuration directory.",
    ),
    DotfileCandidate(
        ".emacs.d",
        "Emacs configuration directory.",
    ),
    DotfileCandidate(
        ".config/emacs",
        "Alternative Emacs configuration directory.",
    ),
    DotfileCandidate(
        ".config/helix",
        "Helix editor configuration directory.",
    ),
    DotfileCandidate(
        ".config/nano",
        "Nano editor configuration directory.",
    ),
    # Git & version control
    DotfileCandidate(
        ".gitconfig",
        "Global Git configuration: user info, aliases, and defaults.",
    ),
    DotfileCandidate(
        ".gitconfig.d",
        "Directory for modular Git configuration includes.",
    ),
    DotfileCandidate(
        ".gitattributes",
        "Git attributes controlling diffing, merging, and file behavior.",
    ),
    DotfileCandidate(
        ".gitignore_global",
        "Global Git ignore rules applied to all repositories.",
    ),
    DotfileCandidate(
        ".gitmessage",
        "Git commit message template.",
    ),
    # Terminal & multiplexers
    DotfileCandidate(
        ".tmux.conf",
        "tmux terminal multiplexer configuration.",
    ),
    DotfileCandidate(
        ".config/zellij",
        "Zellij terminal multiplexer configuration.",
    ),
    DotfileCandidate(
        ".config/screen",
        "GNU screen configuration directory.",
    ),
    DotfileCandidate(
        ".config/less",
        "Configuration for the less pager.",
    ),
    # Terminal emulators
    DotfileCandidate(
        ".config/alacritty",
        "Alacritty terminal emulator configuration.",
    ),
    DotfileCandidate(
        ".config/kitty",
        "Kitty terminal emulator configuration.",
    ),
    DotfileCandidate(
        ".config/wezterm",
        "WezTerm terminal emulator configuration.",
    ),
    DotfileCandidate(
        ".config/iterm2",
        "iTerm2 configuration directory (partial export support).",
    ),
    DotfileCandidate(
        ".config/foot",
        "Foot terminal emulator configuration.",
    ),
    # CLI UX tools
    DotfileCandidate(
        ".config/starship.toml",
        "Starship cross-shell prompt configuration.",
    ),
    DotfileCandidate(
        ".config/bat",
        "Configuration for bat, a syntax-highlighted cat replacement.",
    ),
    DotfileCandidate(
        ".config/ripgrep",
        "Default flags and settings for ripgrep (rg).",
    ),
    DotfileCandidate(
        ".config/fd",
        "Default behavior for fd, a modern find replacement.",
    ),
    DotfileCandidate(
        ".config/eza",
        "Configuration for eza, a modern ls replacement.",
    ),
    DotfileCandidate(
        ".config/direnv",
        "direnv configuration directory.",
    ),
    DotfileCandidate(
        ".envrc",
        "Per-directory environment variables managed by direnv.",
    ),
    # SSH & crypto (config only)
    DotfileCandidate(
        ".ssh/config",
        "SSH client configuration: host aliases, keys, and options.",
    ),
    DotfileCandidate(
        ".sshconfig",
        "SSH client configuration: host aliases, keys, and options.",
    ),
    DotfileCandidate(
        ".ssh/known_hosts",
        "Known SSH host keys. Does not contain private keys.",
    ),
    DotfileCandidate(
        ".gnupg/gpg.conf",
        "GnuPG configuration file.",
    ),
    DotfileCandidate(
        ".gnupg/gpg-agent.conf",
        "GnuPG agent configuration.",
    ),
    # Language & package managers
    DotfileCandidate(
        ".npmrc",
        "npm configuration file.",
    ),
    DotfileCandidate(
        ".yarnrc",
        "Yarn (classic) configuration file.",
    ),
    DotfileCandidate(
        ".yarnrc.yml",
        "Yarn Berry (modern) configuration file.",
    ),
    DotfileCandidate(
        ".pnpmrc",
        "pnpm configuration file.",
    ),
    DotfileCandidate(
        ".cargo/config.toml",
        "Cargo (Rust) configuration: registries, aliases, build flags.",
    ),
    DotfileCandidate(
        ".rustfmt.toml",
        "Rust code formatting configuration.",
    ),
    DotfileCandidate(
        ".tool-versions",
        "asdf-managed language version definitions.",
    ),
    DotfileCandidate(
        ".config/asdf",
        "asdf version manager configuration directory.",
    ),
    DotfileCandidate(
        ".pyenvrc",
        "pyenv shell integration configuration.",
    ),
    # OS / desktop
    DotfileCandidate(
        ".config/fontconfig",
        "Font rendering and selection configuration.",
    ),
    DotfileCandidate(
        ".config/mimeapps.list",
        "Default application associations for MIME types.",
    ),
    DotfileCandidate(
        ".config/systemd/user",
        "User-level systemd services and timers.",
    ),
)


def default_dotfile_paths() -> list[str]:
    """Get the home-relative paths of every curated candidate."""
    return [c.path for c in DEFAULT_DOTFILES]


def find_candidate(path: str) -> DotfileCandidate | None:
    """Find a curated candidate by its home-relative path."""
    for candidate in DEFAULT_DOTFILES:
        if candidate.path == path:
            return candidate
    return None


def is_custom_file(path: str) -> bool:
    """Check if a home-relative path is outside the curated list."""
    return find_candidate(path) is None
