"""Reading the ``Cookie`` header and writing ``Set-Cookie``."""

from __future__ import annotations

from dataclasses import dataclass


def parse_cookies(header: str) -> dict[str, str]:
    """Split a ``Cookie`` header into a dict.

    Pairs without ``=`` or without a name are ignored. Browsers send the
    most specific path first, so a repeated name keeps its first value.
    """
    jar: dict[str, str] = {}
    for chunk in header.split(";"):
        name, eq, value = chunk.partition("=")
        name = name.strip()
        if eq and name:
            jar.setdefault(name, value.strip())
    return jar


@dataclass(frozen=True, slots=True)
class SetCookie:
    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    @classmethod
    def expired(cls, name: str, path: str = "/", domain: str | None = None) -> SetCookie:
        """Blank value with ``Max-Age=0`` so the browser forgets *name*."""
        return cls(name=name, value="", max_age=0, path=path, domain=domain)

    def to_header_value(self) -> str:
        attributes = [
            f"Max-Age={self.max_age}" if self.max_age is not None else "",
            f"Path={self.path}" if self.path else "",
            f"Domain={self.domain}" if self.domain else "",
            "Secure" if self.secure else "",
            "HttpOnly" if self.httponly else "",
            f"SameSite={self.samesite.capitalize()}" if self.samesite else "",
        ]
        return "; ".join([f"{self.name}={self.value}", *filter(None, attributes)])
