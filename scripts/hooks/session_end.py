#!/usr/bin/env python3
"""SessionEnd hook: queue transcript analysis when a session ends.

Wire this into ~/.claude/settings.json as a SessionEnd command hook. It
hands off to the background batch worker and returns immediately.
"""

from __future__ import annotations

import json
import os
import sys

# Recursion guard: skip if this session was started by the analyzer
if os.environ.get("SKILL_MANAGER_INTERNAL") == "1":
    print(json.dumps({}))
    sys.exit(0)

from skill_manager.cli.hook import session_end


def main() -> None:
    """Handle SessionEnd hook event by starting the batch worker."""
    try:
        session_end()
    except Exception as e:
        print(f"session_end error: {e}", file=sys.stderr)
        # Always return success to not block the hook
        print(json.dumps({}))


if __name__ == "__main__":
    main()
