"""Credential helpers for BOINC account RPCs."""

from __future__ import annotations

import hashlib


def hash_password(password: str, email_addr: str) -> str:
    """
    Return the password hash BOINC projects expect in ``passwd_hash``.

    The hash is MD5 over the password followed by the lower-cased email
    address; the clear-text password never goes over the wire.
    """
    material = password + email_addr.lower()
    return hashlib.md5(material.encode("utf-8")).hexdigest()
