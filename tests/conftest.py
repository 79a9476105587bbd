"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from var2tmpfiles.tmpfiles.identity import IdentitySnapshot
from var2tmpfiles.tmpfiles.rootfs import RootDir

TMPFILESD = "usr/lib/tmpfiles.d"


@pytest.fixture(autouse=True)
def isolated_config_home(tmp_path_factory: pytest.TempPathFactory) -> Iterator[Path]:
    """Point XDG_CONFIG_HOME at an empty directory for every test."""
    config_home = tmp_path_factory.mktemp("config-home")
    with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(config_home)}):
        yield config_home


@pytest.fixture
def owner_ids(tmp_path: Path) -> tuple[int, int]:
    """uid and gid that new files below tmp_path are created with."""
    st = tmp_path.stat()
    return st.st_uid, st.st_gid


@pytest.fixture
def identities(owner_ids: tuple[int, int]) -> IdentitySnapshot:
    """Identity snapshot naming the test user 'testuser' and group 'testgroup'."""
    uid, gid = owner_ids
    return IdentitySnapshot(users={uid: "testuser"}, groups={gid: "testgroup"})


@pytest.fixture
def root_path(tmp_path: Path) -> Path:
    """Minimal root filesystem with an empty tmpfiles.d directory."""
    root = tmp_path / "root"
    (root / TMPFILESD).mkdir(parents=True)
    return root


@pytest.fixture
def rootfs(root_path: Path) -> RootDir:
    """RootDir over the minimal root filesystem."""
    return RootDir(root_path)


@pytest.fixture
def image_root(root_path: Path, owner_ids: tuple[int, int]) -> Path:
    """Root filesystem whose passwd/group files name the test user."""
    uid, gid = owner_ids
    etc = root_path / "etc"
    etc.mkdir()
    (etc / "passwd").write_text(
        f"root:x:0:0:root:/root:/bin/bash\ntestuser:x:{uid}:{gid}::/home/testuser:/bin/sh\n"
    )
    (etc / "group").write_text(f"root:x:0:\ntestgroup:x:{gid}:\n")
    return root_path
