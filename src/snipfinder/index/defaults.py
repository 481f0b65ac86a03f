"""Starter snippet collection."""

from __future__ import annotations

import logging
from typing import Tuple

from snipfinder.index.storage import LocalSnippetStore

LOGGER = logging.getLogger(__name__)

# (folder, name, content)
DEFAULT_SNIPPETS: Tuple[Tuple[str, str, str], ...] = (
    ("Find", "in directory", "find . -maxdepth 1 ${name}"),
    ("Find", "from directory", "find . -iname ${name}"),
    (
        "Find",
        "from directory and exec command",
        "find . -iname ${name} -exec ${exec_command}",
    ),
    ("Find", "from directory and exec rm", "find . -iname ${name} -exec rm {}"),
    ("Find", "files larger than", "find . -size +${size}M"),
    ("Find", "files smaller than", "find . -size -${size}M"),
    ("SSH", "connect", "ssh ${user}@${host}"),
    (
        "SSH",
        "copy from remote to local",
        "scp ${user@hostname#port}:${remote_path}/${file} ${file}",
    ),
    (
        "SSH",
        "copy from local to remote",
        "scp ${file} ${user@hostname#port}:${remote_path}/${file}",
    ),
    (
        "SSH",
        "copy remote to remote",
        "scp ${user@source_hostname#port}:${source_path}/${file} "
        "${user@dest_hostname#port}:${dest_path}/${file}",
    ),
    (
        "Git",
        "config user and email",
        'git config --global user.name "${first_name_last_name}"\n'
        'git config --global user.email "${email}"',
    ),
)


def seed_default_snippets(store: LocalSnippetStore, *, overwrite: bool = False) -> int:
    """Write the starter snippets into ``store`` and return how many were written."""
    written = 0
    for folder, name, content in DEFAULT_SNIPPETS:
        if not overwrite and store.exists(folder, name):
            continue
        store.save(folder, name, content)
        written += 1
    LOGGER.info("Seeded %d default snippets into %s", written, store.root)
    return written
