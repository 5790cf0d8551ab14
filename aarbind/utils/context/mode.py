#
# Copyright 2024 aarbind Project Authors. All rights reserved.
# Use of this source code is governed by a MIT-style
# license that can be found at
#
# https://opensource.org/license/MIT
#
# The above copyright notice and this permission
# notice shall be included in all copies or
# substantial portions of the Software.

"""Execution mode threaded through every build step."""

from enum import Enum


class ExecutionMode(Enum):
    """Whether a build step touches the filesystem or only prints its plan.

    REAL runs external commands and writes outputs. PLAN prints the commands
    that would run and writes nothing outside the scratch checks.
    """

    REAL = "real"
    PLAN = "plan"

    @property
    def is_plan(self) -> bool:
        return self is ExecutionMode.PLAN

    @classmethod
    def from_dry_run(cls, dry_run: bool) -> "ExecutionMode":
        return cls.PLAN if dry_run else cls.REAL
