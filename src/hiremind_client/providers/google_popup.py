# src/hiremind_client/providers/google_popup.py
"""
Google account picker for desktop processes.

Runs the installed-app OAuth flow (opens a browser, handles the redirect on a
local port) and hands the resulting Google ID token to FirebaseRestProvider:

    provider = FirebaseRestProvider(google_id_token_source=installed_app_id_token_source())
"""
from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from google_auth_oauthlib.flow import InstalledAppFlow

_log = logging.getLogger(__name__)

# Standard OIDC scopes; do not over-scope
SCOPES = ["openid", "email", "profile"]

GOOGLE_CLIENT_SECRETS = os.getenv("GOOGLE_CLIENT_SECRETS", "client_secret.json")


def installed_app_id_token_source(
    client_secrets_file: Optional[str] = None,
    *,
    port: int = 0,
) -> Callable[[], Optional[str]]:
    path = client_secrets_file or GOOGLE_CLIENT_SECRETS

    def pick_account() -> Optional[str]:
        flow = InstalledAppFlow.from_client_secrets_file(path, scopes=SCOPES)
        creds = flow.run_local_server(port=port)
        id_token = getattr(creds, "id_token", None)
        if not id_token:
            _log.info("Google sign-in finished without an ID token")
        return id_token

    return pick_account
