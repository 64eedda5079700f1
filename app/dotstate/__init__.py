"""dotstate - profile-based dotfile manager.

Dotfiles live in a version-controlled storage repository and are
symlinked back into the home directory, one profile at a time.
"""

__version__ = "0.4.0"
