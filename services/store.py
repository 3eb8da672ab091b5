"""Analysis store — one JSON document per (call, analysis type).

Documents live at ``{root}/call_analyses/{call_id}_{analysis_type}.json``.
Writes are best-effort: a failed write is logged and the analysis is still
returned to the caller.
"""

import json
import re
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from config.settings import DATA_DIR


COLLECTION = "call_analyses"


def _safe_name(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]", "_", value)


class AnalysisStore:
    def __init__(self, root: str = DATA_DIR):
        self.root = Path(root) / COLLECTION

    def path_for(self, call_id: str, analysis_type: str) -> Path:
        return self.root / f"{_safe_name(str(call_id))}_{_safe_name(analysis_type)}.json"

    def store_analysis(self, call_id: str, analysis: dict, analysis_type: str) -> bool:
        """Write (or overwrite) an analysis document. Returns False on failure."""
        path = self.path_for(call_id, analysis_type)
        now = datetime.now(timezone.utc).isoformat()
        created_at = now
        try:
            if path.exists():
                with open(path) as f:
                    created_at = json.load(f).get("createdAt", now)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read existing analysis {path.name}: {e}")

        document = {
            "callId": call_id,
            "analysisType": analysis_type,
            "analysis": analysis,
            "createdAt": created_at,
            "updatedAt": now,
        }
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                json.dump(document, f, indent=2, default=str)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to store analysis for call {call_id}: {e}")
            return False

        logger.info(f"Stored analysis for call {call_id}, type: {analysis_type}")
        return True

    def load(self, call_id: str, analysis_type: str) -> dict | None:
        path = self.path_for(call_id, analysis_type)
        if not path.exists():
            return None
        with open(path) as f:
            return json.load(f)
