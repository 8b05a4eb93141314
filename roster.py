#!/usr/bin/env python3
"""Reader for the user list CSV that drives account and SSH key provisioning.

Expected columns, by position: created at, external id, login, email, role.
The first row is a header. Rows with fewer than five columns are ignored.
"""

from __future__ import annotations

import csv
from typing import List

from errors import ConfigurationError
from logging_utils import Logger
from models import RosterEntry

MIN_COLUMNS = 5
LOGIN_COLUMN = 2
EMAIL_COLUMN = 3
ROLE_COLUMN = 4


def read_user_list(path: str) -> List[RosterEntry]:
    try:
        with open(path, newline="", encoding="utf-8") as handle:
            rows = list(csv.reader(handle))
    except (OSError, csv.Error) as e:
        raise ConfigurationError(f"failed to read user list '{path}': {e}") from e

    entries: List[RosterEntry] = []
    for index, row in enumerate(rows):
        if index == 0:
            continue
        if len(row) < MIN_COLUMNS:
            Logger.debug("skip short user list row", line=index + 1, columns=len(row))
            continue
        login = row[LOGIN_COLUMN].strip()
        if not login:
            Logger.debug("skip user list row without login", line=index + 1)
            continue
        entries.append(
            RosterEntry(
                login=login,
                email=row[EMAIL_COLUMN].strip(),
                role=row[ROLE_COLUMN].strip(),
            )
        )

    Logger.info(f"loaded {len(entries)} users from {path}")
    return entries
