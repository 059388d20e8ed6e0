"""
Credential sources for the HackMD login.

Credentials are never accepted as command-line arguments, so they do not end
up in shell history. The CLI uses PromptCredentialSource; tests and scripted
runs inject a StaticCredentialSource instead.
"""

import typer

from hackmd_index.errors import AuthenticationError
from hackmd_index.types import Credentials


class PromptCredentialSource:
    """Ask for the email and password on the terminal (password hidden)."""

    def __init__(
        self,
        email_prompt: str = "HackMD email",
        password_prompt: str = "HackMD password",
    ) -> None:
        self.email_prompt = email_prompt
        self.password_prompt = password_prompt

    def get_credentials(self) -> Credentials:
        email = typer.prompt(self.email_prompt).strip()
        password = typer.prompt(self.password_prompt, hide_input=True)

        if not email or not password:
            raise AuthenticationError("Email and password must both be provided.")

        return Credentials(email=email, password=password)


class StaticCredentialSource:
    """Return a fixed credential pair."""

    def __init__(self, email: str, password: str) -> None:
        self._credentials = Credentials(email=email, password=password)

    def get_credentials(self) -> Credentials:
        return self._credentials
