"""
Tests for the chwd package.

 - Run the chwd pytest tests against the installed package
 - Run them again with the strict release policy selected through the
   environment
"""

from __future__ import annotations

import os
from pathlib import Path

import nox

version = "0.1.0"
project_dir = Path(__file__).resolve().parent


def install_chwd(session: nox.Session):
    session.install("-U", "pip", "pytest")
    dist_dir = os.getenv("CHWD_WHEEL_DIR")
    if dist_dir:
        session.env["PIP_FIND_LINKS"] = str(Path(dist_dir).resolve())
        session.install(f"chwd=={version}")
    else:
        session.install(".")


@nox.session
def tests(session: nox.Session):
    install_chwd(session)
    session.run("pytest")


@nox.session
def tests_strict(session: nox.Session):
    install_chwd(session)
    session.env["CHWD_ON_RELEASE_ERROR"] = "raise"
    session.env["CHWD_LOGLEVEL"] = "DEBUG"
    session.run("pytest")
