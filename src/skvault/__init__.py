"""
SKVault -- a personal secret vault.

Bank cards, credentials, notes and blobs, sealed with envelope encryption
and mirrored to a remote store without the plaintext ever leaving the
moment of use.
"""

import os

__version__ = "0.1.0"
__author__ = "smilinTux"

VAULT_HOME = os.environ.get("SKVAULT_HOME", "~/.skvault")
