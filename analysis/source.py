"""
JSON report source for analysis payloads.

The external analysis service drops one file per project and view:

    <reports_dir>/<project_id>/<MODE>.json

A missing file just means the analysis has not been produced yet.
"""

import json
import logging
from pathlib import Path
from typing import Optional, TypeVar, Union
from urllib.parse import quote

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from core.errors import ValidationError

logger = logging.getLogger(__name__)

REPORTS_DIR = Path("reports")

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class ReportSource:
    def __init__(self, reports_dir: Union[str, Path] = REPORTS_DIR):
        self.reports_dir = Path(reports_dir)

    def path_for(self, project_id: str, mode: str) -> Path:
        # Project ids are caller-supplied, keep them to a single path segment
        return self.reports_dir / quote(project_id, safe="") / f"{mode.upper()}.json"

    def load(self, project_id: str, mode: str, model: type[PayloadT]) -> Optional[PayloadT]:
        """
        Return the validated payload, or None if no report exists.

        Raises ValidationError when the file is not valid JSON or does not
        match `model`.
        """
        path = self.path_for(project_id, mode)
        if not path.exists():
            return None
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return model.model_validate(raw)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"{path.name} is not valid JSON") from exc
        except SchemaError as exc:
            raise ValidationError(
                f"{path.name} does not match {model.__name__}: {exc.errors()[0]['msg']}"
            ) from exc

    def write(self, project_id: str, mode: str, payload: Union[BaseModel, dict, list]) -> Path:
        """Store a payload the way the analysis service does. Returns the file path."""
        path = self.path_for(project_id, mode)
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json", by_alias=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        logger.info("Analysis report written to %s", path)
        return path
