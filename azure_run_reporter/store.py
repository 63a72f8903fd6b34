"""Hand the active test run id over between processes through a JSON file."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from azure_run_reporter.models.run import RunContext

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class RunContextStore:
    """JSON file holding ``{"testRunId": ...}`` for the run being reported.

    Written once when the run is created and read back before every test, so
    that reporters in other processes pick up the same run.
    """

    path: Path

    def save(self, context: RunContext) -> None:
        """Persist the run id of ``context``."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"testRunId": context.run_id}))
        log.debug("Stored test run %s in %s", context.run_id, self.path)

    def load(self) -> RunContext | None:
        """Return the stored run, or None if there is none."""
        try:
            data = json.loads(self.path.read_text())
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            log.warning("Cannot read test run id from %s: %s", self.path, exc)
            return None

        run_id = data.get("testRunId") if isinstance(data, dict) else None
        if run_id is None:
            return None
        try:
            return RunContext(run_id=run_id)
        except ValidationError:
            log.warning("Invalid test run id in %s: %r", self.path, run_id)
            return None

    def clear(self) -> None:
        """Forget the stored run."""
        self.path.unlink(missing_ok=True)
