from __future__ import annotations

import time
from datetime import date
from io import BytesIO

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ..core.context import RequestContext
from ..db.session import get_db
from ..deps.auth import require_subject
from ..services.reporting import XLSX_MEDIA_TYPE, generate_excel

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/excel", summary="Last ned timeføringer som Excel")
def api_export_excel(
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    project_id: int | None = Query(None),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_subject),
):
    content = generate_excel(db, ctx, date_from=date_from, date_to=date_to, project_id=project_id)
    filename = f"time-report-{int(time.time() * 1000)}.xlsx"
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
